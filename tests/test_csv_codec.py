# SPDX-License-Identifier: Apache-2.0
"""Tests for CSV parsing and serialization."""

import pytest

from csv_translator.core.csv_codec import ParseError, parse_rows, read_csv_file, serialize_rows


class TestParseRows:
    """Tests for parse_rows()."""

    def test_header_and_rows(self) -> None:
        headers, rows = parse_rows("name,city\nAsha,Pune\nRavi,Chennai\n")

        assert headers == ["name", "city"]
        assert rows == [["Asha", "Pune"], ["Ravi", "Chennai"]]

    def test_quoted_fields(self) -> None:
        """Test commas, quotes and newlines inside quoted cells."""
        text = 'id,comment\n1,"Hello, world"\n2,"She said ""hi"""\n3,"two\nlines"\n'
        headers, rows = parse_rows(text)

        assert rows == [["1", "Hello, world"], ["2", 'She said "hi"'], ["3", "two\nlines"]]

    def test_cells_are_trimmed(self) -> None:
        headers, rows = parse_rows(" a , b \n  x ,y  \n")

        assert headers == ["a", "b"]
        assert rows == [["x", "y"]]

    def test_blank_lines_skipped(self) -> None:
        headers, rows = parse_rows("\n\na,b\n\n1,2\n,\n3,4\n")

        assert headers == ["a", "b"]
        assert rows == [["1", "2"], ["3", "4"]]

    def test_bom_removed(self) -> None:
        headers, _ = parse_rows("\ufeffname,age\nA,1\n")

        assert headers == ["name", "age"]

    def test_crlf_line_endings(self) -> None:
        headers, rows = parse_rows("a,b\r\n1,2\r\n")

        assert rows == [["1", "2"]]

    def test_header_only(self) -> None:
        headers, rows = parse_rows("a,b,c\n")

        assert headers == ["a", "b", "c"]
        assert rows == []

    def test_empty_document_raises(self) -> None:
        with pytest.raises(ParseError, match="empty"):
            parse_rows("\n  \n")

    def test_ragged_row_reports_line(self) -> None:
        """Test a row with the wrong column count names its line."""
        with pytest.raises(ParseError) as exc_info:
            parse_rows("a,b\n1,2\n3\n")

        assert exc_info.value.line == 3
        assert str(exc_info.value).startswith("Line 3:")

    def test_unterminated_quote_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_rows('a,b\n1,"open\n')


class TestSerializeRows:
    """Tests for serialize_rows()."""

    def test_minimal_quoting(self) -> None:
        text = serialize_rows(["a", "b"], [["plain", "has, comma"], ['q"uote', "x"]])

        assert text == 'a,b\nplain,"has, comma"\n"q""uote",x\n'

    def test_parse_after_serialize_keeps_table(self) -> None:
        headers = ["id", "text"]
        rows = [["1", "line\nbreak"], ["2", "नमस्ते, दुनिया"]]

        assert parse_rows(serialize_rows(headers, rows)) == (headers, rows)


class TestReadCsvFile:
    """Tests for read_csv_file()."""

    def test_reads_utf8_with_bom(self, tmp_path) -> None:
        path = tmp_path / "in.csv"
        path.write_bytes("\ufeffa,b\n1,2\n".encode("utf-8"))

        assert read_csv_file(path) == "a,b\n1,2\n"

    def test_rejects_large_file(self, tmp_path) -> None:
        path = tmp_path / "big.csv"
        path.write_text("a\n" * 100, encoding="utf-8")

        with pytest.raises(ParseError, match="exceeds"):
            read_csv_file(path, max_size=10)

    def test_rejects_invalid_utf8(self, tmp_path) -> None:
        path = tmp_path / "latin.csv"
        path.write_bytes(b"name\n\xff\xfe\xfa\n")

        with pytest.raises(ParseError, match="UTF-8"):
            read_csv_file(path)
