"""Tests for the formula tokenizer and syntax tree."""

from __future__ import annotations

import pytest

from sheet_guesstimate.formula import (
    Call,
    Group,
    Range,
    Ref,
    Token,
    expand_range,
    format_number,
    only,
    parse,
    serialize,
    sheet_text,
)


@pytest.mark.parametrize(
    "formula",
    [
        "=A1+B1*2",
        '=IF(A1>0,"yes","no")',
        "=SUM(A1:A3",
        "=(A1+B1))",
        "='My Sheet'!A1*Sheet2!$B$2",
        "=#DIV/0!",
        "=VLOOKUP(A1, B1:C5, 2, FALSE)",
        "=${metric:A1}+${metric:Sheet1!B2}",
        '="unterminated',
    ],
)
def test_serialize_reproduces_source(formula: str) -> None:
    assert serialize(parse(formula)) == formula


def test_call_with_range_argument() -> None:
    nodes = parse("=SUM(A1:A3)")

    assert nodes[0] == Token("OP", "=")
    call = nodes[1]
    assert isinstance(call, Call)
    assert call.key == "SUM"
    rng = only(call.args[0])
    assert isinstance(rng, Range)
    assert (rng.start.address, rng.end.address) == ("A1", "A3")


def test_function_names_are_not_references() -> None:
    call = parse("=LOG10(A1)")[1]

    assert isinstance(call, Call)
    assert call.name == "LOG10"
    assert only(call.args[0]) == Ref(sheet=None, address="A1", text="A1")


def test_identifiers_containing_a_function_name() -> None:
    nodes = parse("=MYSUM(A1)+SUMPRODUCT(A1:A2,B1:B2)")

    calls = [n for n in nodes if isinstance(n, Call)]
    assert [c.key for c in calls] == ["MYSUM", "SUMPRODUCT"]


def test_quoted_sheet_reference() -> None:
    ref = parse("='Q1 ''Plan'''!B2")[1]

    assert isinstance(ref, Ref)
    assert ref.sheet == "Q1 'Plan'"
    assert ref.address == "B2"


def test_absolute_markers_dropped_from_address() -> None:
    ref = parse("=$C$7")[1]

    assert ref.address == "C7"
    assert ref.text == "$C$7"


def test_unclosed_group_and_stray_paren() -> None:
    nodes = parse("=(A1+1")
    assert isinstance(nodes[1], Group)
    assert nodes[1].closed is False

    nodes = parse("=A1)")
    assert nodes[-1] == Token("RPAREN", ")")


def test_empty_call_has_no_arguments() -> None:
    call = parse("=NOW()")[1]
    assert call.arguments() == []


def test_expand_range_is_column_major() -> None:
    assert expand_range("A1", "B2") == ["A1", "A2", "B1", "B2"]


def test_expand_range_past_column_z() -> None:
    assert expand_range("Y1", "AB1") == ["Y1", "Z1", "AA1", "AB1"]


def test_expand_reversed_range_is_empty() -> None:
    assert expand_range("A3", "A1") == []


def test_range_cells_keep_sheet() -> None:
    rng = parse("='Q1 Plan'!A1:A2")[1]
    assert [str(r) for r in rng.cells()] == ["'Q1 Plan'!A1", "'Q1 Plan'!A2"]


def test_format_number() -> None:
    assert format_number(1.0) == "1"
    assert format_number(0.5) == "0.5"
    assert format_number(-0.05) == "-0.05"
    assert format_number(120) == "120"


def test_sheet_text_quotes_when_needed() -> None:
    assert sheet_text("Sheet1") == "Sheet1"
    assert sheet_text("Bob's data") == "'Bob''s data'"
