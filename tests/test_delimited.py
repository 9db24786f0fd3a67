from __future__ import annotations

import pytest

from lodestring.delimited import DelimitedTable, make_key, quote_field, tokenize_row
from lodestring.structures import Column


@pytest.mark.parametrize(
    ("line", "separator", "expected"),
    [
        ('1,"a,b",c', ",", ["1", "a,b", "c"]),
        ('"say ""hi""",x', ",", ['say "hi"', "x"]),
        (r"a\,b,c", ",", ["a,b", "c"]),
        (r"escaped\t tab,x", ",", [r"escaped\t tab", "x"]),
        ('  a  ,  " b "  ', ",", ["a", "b"]),
        ("a\t\tb", "\t", ["a", "", "b"]),
        ("a;b , c", ";", ["a", "b , c"]),
        ("", ",", [""]),
    ],
)
def test_tokenize_row(line, separator, expected):
    tokens = tokenize_row(line, separator)

    assert tokens.fields == expected
    assert tokens.unterminated is False


def test_unterminated_quote_reads_to_end_of_line():
    tokens = tokenize_row('x,"abc,def', ",")

    assert tokens.fields == ["x", "abc,def"]
    assert tokens.unterminated is True


def test_make_key_collapses_whitespace():
    assert make_key("  Hello\n   world\t ") == "Hello world"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain", "plain"),
        ("a,b", '"a,b"'),
        (" padded", '" padded"'),
        ("two\nlines", '"two\nlines"'),
        ('say "hi"', '"say ""hi"""'),
        ("", ""),
    ],
)
def test_quote_field(value, expected):
    assert quote_field(value, ",") == expected


def test_header_row_names_columns():
    table = DelimitedTable.parse("id,name,description\n1,\"a,b\",c\n")

    assert table.names == ["id", "name", "description"]
    assert table.localizable == ["id", "name", "description"]
    assert table.records == [{"id": "1", "name": "a,b", "description": "c"}]


def test_render_reapplies_quoting():
    table = DelimitedTable.parse("id,name,description\n1,\"a,b\",c\n")

    assert table.render() == 'id,name,description\n1,"a,b",c'


def test_blank_lines_and_carriage_returns_are_dropped():
    table = DelimitedTable.parse("a,b\r\n\r\n1,2\r\n   \n3,4")

    assert [record["a"] for record in table.records] == ["1", "3"]


def test_short_rows_are_filled_and_long_rows_truncated():
    table = DelimitedTable.parse("a,b,c\n1\n1,2,3,4\n")

    assert table.records == [
        {"a": "1", "b": "", "c": ""},
        {"a": "1", "b": "2", "c": "3"},
    ]


def test_configured_columns_replace_the_header():
    columns = [Column("key", localizable=False), Column("text")]
    table = DelimitedTable.parse("id,name\nk1,Hello\n", columns=columns)

    assert table.names == ["key", "text"]
    assert table.localizable == ["text"]
    assert table.records == [{"key": "k1", "text": "Hello"}]


def test_without_header_columns_are_positional():
    table = DelimitedTable.parse("k1,Hello\nk2,World,extra\n", header=False)

    assert table.names == ["0", "1", "2"]
    assert table.records[0] == {"0": "k1", "1": "Hello", "2": ""}
    assert table.render() == "k1,Hello,\nk2,World,extra"


def test_custom_row_separator():
    table = DelimitedTable.parse("a,b|1,2|3,4", row_separator=r"\|")

    assert len(table.records) == 2


def test_malformed_rows_are_reported():
    reported = []
    table = DelimitedTable.parse(
        'a,b\n1,"open\n2,ok\n',
        on_malformed=lambda row, line: reported.append((row, line)),
    )

    assert reported == [(2, '1,"open')]
    assert table.records[0] == {"a": "1", "b": "open"}
    assert table.records[1] == {"a": "2", "b": "ok"}


def test_localizable_values_in_file_order():
    columns = [Column("id", localizable=False), Column("name"), Column("notes")]
    table = DelimitedTable.parse("id,name,notes\n1,Alice,\n2,Bob,tall\n", columns=columns)

    assert list(table.localizable_values()) == ["Alice", "Bob", "tall"]


def test_render_with_transform_only_touches_localizable_fields():
    columns = [Column("id", localizable=False), Column("name")]
    table = DelimitedTable.parse("id,name\n1,Alice\n2,\n", columns=columns)

    rendered = table.render(transform=lambda column, value: value.upper() + ", jr")

    assert rendered == 'id,name\n1,"ALICE, jr"\n2,'


def test_merge_keeps_existing_values_over_empty_ones():
    first = DelimitedTable.parse("id,name\n1,Alice\n2,Bob\n")
    second = DelimitedTable.parse("id,name,email\n1,,a@x.com\n3,Carol,c@x.com\n")

    first.merge(second)

    assert first.names == ["id", "name", "email"]
    assert first.records[0] == {"id": "1", "name": "Alice", "email": "a@x.com"}
    assert first.records[1] == {"id": "2", "name": "Bob"}
    assert first.records[2] == {"id": "3", "name": "Carol", "email": "c@x.com"}
    assert first.render() == "id,name,email\n1,Alice,a@x.com\n2,Bob,\n3,Carol,c@x.com"


def test_merge_overwrites_with_non_empty_values():
    first = DelimitedTable.parse("id,name\n1,Alice\n")
    second = DelimitedTable.parse("id,name\n1,Alicia\n")

    first.merge(second)

    assert first.records == [{"id": "1", "name": "Alicia"}]


def test_merge_on_explicit_key_column():
    first = DelimitedTable.parse("name,id\nAlice,1\n", key="id")
    second = DelimitedTable.parse("id,name\n1,Alicia\n")

    first.merge(second)

    assert first.records == [{"name": "Alicia", "id": "1"}]


def test_localizable_names_apply_to_header_columns():
    table = DelimitedTable.parse("id,name,notes\n1,Alice,tall\n", localizable=["name"])

    assert table.names == ["id", "name", "notes"]
    assert table.localizable == ["name"]
    assert list(table.localizable_values()) == ["Alice"]
