"""
Tokenizer Tests.

Run with:
    pytest tests/test_csv_parser.py -v
"""

from core.csv_parser import parse_line, split_lines


class TestParseLine:
    """Tests for parse_line."""

    def test_plain_fields(self):
        """Test unquoted fields split on commas."""
        assert parse_line("a,b,c") == ["a", "b", "c"]

    def test_quoted_comma_is_content(self):
        """Test a comma inside quotes stays in the field and quotes are dropped."""
        assert parse_line('1,"Austin, TX",2') == ["1", "Austin, TX", "2"]

    def test_fields_are_trimmed(self):
        """Test surrounding whitespace is stripped from every field."""
        assert parse_line("  a , b ,c  ") == ["a", "b", "c"]

    def test_trailing_empty_field_kept(self):
        """Test the last field is emitted even when empty."""
        assert parse_line("a,b,") == ["a", "b", ""]
        assert parse_line("") == [""]

    def test_field_count_is_commas_plus_one(self):
        """Test a line without quotes yields one more field than it has commas."""
        line = "x,,y,,,z"
        assert len(parse_line(line)) == line.count(",") + 1

    def test_doubled_quote_toggles_twice(self):
        """Test there is no escaped-quote support."""
        assert parse_line('a""b,c') == ["ab", "c"]

    def test_unterminated_quote_swallows_rest(self):
        """Test an unclosed quote keeps later commas as content."""
        assert parse_line('a,"b,c') == ["a", "b,c"]


class TestSplitLines:
    """Tests for split_lines."""

    def test_mixed_newlines(self):
        """Test LF, CRLF and CR all end a line."""
        assert split_lines("a\nb\r\nc\rd") == ["a", "b", "c", "d"]

    def test_empty_text(self):
        """Test empty input has no lines."""
        assert split_lines("") == []
