"""Tests for shared text extraction."""

import pytest
from bs4 import BeautifulSoup

from src.shared.errors import ParseError
from src.shared.extract import clean_text, dedupe_preserving_order, extract_texts


def _doc(html):
    return BeautifulSoup(html, 'html.parser')


class TestCleanText:
    """Tests for clean_text."""

    def test_removes_line_breaks_and_trims(self):
        """Test CR and LF are removed, not replaced with spaces."""
        assert clean_text("  123 Main St\r\nLittle Rock, AR  ") == "123 Main StLittle Rock, AR"

    def test_inner_spaces_kept(self):
        """Test that spaces inside the text survive."""
        assert clean_text("\n  North Little Rock \n") == "North Little Rock"

    def test_idempotent(self):
        """Test cleaning twice gives the same result as once."""
        samples = ["\r\n  a b \r\n", "plain", "", "   ", "x\ny\rz"]
        for sample in samples:
            assert clean_text(clean_text(sample)) == clean_text(sample)

    def test_whitespace_only_becomes_empty(self):
        """Test that blank input cleans to an empty string."""
        assert clean_text(" \r\n\t ") == ""


class TestDedupe:
    """Tests for dedupe_preserving_order."""

    def test_first_occurrence_wins(self):
        """Test later duplicates are dropped and order is kept."""
        assert dedupe_preserving_order(['b', 'a', 'b', 'c', 'a']) == ['b', 'a', 'c']

    def test_empty(self):
        assert dedupe_preserving_order([]) == []


class TestExtractTexts:
    """Tests for extract_texts."""

    def test_matches_in_document_order(self):
        """Test texts come back in document order."""
        doc = _doc('<ul><li class="x">Indiana</li><li class="x">Arkansas</li></ul>')
        assert extract_texts(doc, '.x') == ['Indiana', 'Arkansas']

    def test_duplicates_and_empties_dropped(self):
        """Test that empty and repeated texts are dropped."""
        doc = _doc(
            '<li class="x">\r\n Conway \r\n</li>'
            '<li class="x">   </li>'
            '<li class="x">Conway</li>'
            '<li class="x">Benton</li>'
        )
        assert extract_texts(doc, '.x') == ['Conway', 'Benton']

    def test_nested_text_concatenated(self):
        """Test that nested element text is included."""
        doc = _doc('<address class="c-address"><span>1 Main St</span> <span>Conway, AR</span></address>')
        assert extract_texts(doc, 'address.c-address') == ['1 Main St Conway, AR']

    def test_no_matches(self):
        """Test that an unmatched selector yields an empty list."""
        assert extract_texts(_doc('<p>nothing</p>'), '.missing') == []

    def test_output_has_no_line_breaks(self):
        """Test no extracted text contains CR or LF."""
        doc = _doc('<li class="x">a\nb</li><li class="x">\rc\r</li>')
        for text in extract_texts(doc, '.x'):
            assert '\r' not in text
            assert '\n' not in text
            assert text == text.strip()

    @pytest.mark.parametrize('selector', ['', '   '])
    def test_empty_selector_raises(self, selector):
        """Test that a blank selector raises ParseError."""
        with pytest.raises(ParseError):
            extract_texts(_doc('<p>x</p>'), selector)
