import pytest

from bitpacket.fieldtypes import PacketDefinitionError
from bitpacket.lengthexpr import (
    ERROR_MSG,
    KEY_ERROR_MSG,
    UNCLOSED_MSG,
    parse_length_expr,
)

OTHER_FIELDS = ["banana", "payload"]


def test_float_literal_rejected():
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr("banana + 7.5", OTHER_FIELDS)
    assert str(info.value) == ERROR_MSG


def test_unknown_field_rejected():
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr("tomato", OTHER_FIELDS)
    assert str(info.value) == KEY_ERROR_MSG


def test_own_field_name_rejected():
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr("var_length", OTHER_FIELDS)
    assert str(info.value) == KEY_ERROR_MSG


def test_unclosed_parenthesis_rejected():
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr("banana * (7 + 3", OTHER_FIELDS)
    assert str(info.value) == UNCLOSED_MSG


def test_unexpected_close_rejected():
    with pytest.raises(PacketDefinitionError):
        parse_length_expr("banana) + 1", OTHER_FIELDS)


@pytest.mark.parametrize("text", ["banana < 3", "banana.len()", "\"x\"", "1.0"])
def test_disallowed_tokens(text):
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr(text, OTHER_FIELDS)
    assert str(info.value) == ERROR_MSG


@pytest.mark.parametrize("text", ["", "banana +", "* 3", "()", "3 4"])
def test_syntax_errors(text):
    with pytest.raises(PacketDefinitionError):
        parse_length_expr(text, OTHER_FIELDS)


def test_field_reference():
    expr = parse_length_expr("banana", OTHER_FIELDS)
    assert expr.evaluate({"banana": 4}) == 4
    assert expr.field_references == frozenset({"banana"})


def test_field_plus_literal():
    expr = parse_length_expr("banana + 7", OTHER_FIELDS)
    assert expr.evaluate({"banana": 3}) == 10


@pytest.mark.parametrize("text,expected", [("4", 4), ("0", 0), ("0x10", 16), ("1_000", 1000), ("3usize", 3)])
def test_literals(text, expected):
    assert parse_length_expr(text, OTHER_FIELDS).evaluate({}) == expected


def test_precedence_and_parentheses():
    assert parse_length_expr("2 + 3 * 4", []).evaluate({}) == 14
    assert parse_length_expr("(2 + 3) * 4", []).evaluate({}) == 20
    assert parse_length_expr("10 - 4 - 3", []).evaluate({}) == 3


def test_division_and_modulo_are_integer():
    assert parse_length_expr("banana / 2", OTHER_FIELDS).evaluate({"banana": 7}) == 3
    assert parse_length_expr("banana % 4", OTHER_FIELDS).evaluate({"banana": 7}) == 3


def test_constant_reference():
    expr = parse_length_expr("banana * (OFFSET + 2)", OTHER_FIELDS)
    assert expr.constant_references == frozenset({"OFFSET"})
    assert expr.evaluate({"banana": 2}, {"OFFSET": 3}) == 10


def test_lowercase_name_allowed_beside_constant():
    expr = parse_length_expr("tomato + BASE", OTHER_FIELDS)
    assert expr.field_references == frozenset()
    assert expr.evaluate({}, {"tomato": 1, "BASE": 5}) == 6


def test_constant_check_is_per_nesting_level():
    with pytest.raises(PacketDefinitionError) as info:
        parse_length_expr("(tomato) + BASE", OTHER_FIELDS)
    assert str(info.value) == KEY_ERROR_MSG


def test_missing_field_value():
    expr = parse_length_expr("banana", OTHER_FIELDS)
    with pytest.raises(KeyError):
        expr.evaluate({})


def test_missing_constant_value():
    expr = parse_length_expr("SIZE", [])
    with pytest.raises(KeyError):
        expr.evaluate({})


def test_underflow_raises():
    expr = parse_length_expr("banana - 2", OTHER_FIELDS)
    assert expr.evaluate({"banana": 5}) == 3
    with pytest.raises(ValueError):
        expr.evaluate({"banana": 1})


def test_division_by_zero():
    expr = parse_length_expr("4 / banana", OTHER_FIELDS)
    with pytest.raises(ZeroDivisionError):
        expr.evaluate({"banana": 0})