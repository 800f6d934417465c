"""Arithmetic length expressions such as ``"banana + 7"`` used by variable length fields."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping
from typing import Union

from bitpacket.fieldtypes import PacketDefinitionError

ERROR_MSG = (
    "Only field names, constants, integers, basic arithmetic expressions "
    '(+ - * / %) and parentheses are allowed in the "length" attribute'
)
KEY_ERROR_MSG = "Field name must be a member of the struct and not the field itself"
UNCLOSED_MSG = "this file contains an unclosed delimiter"
UNEXPECTED_CLOSE_MSG = "unexpected closing delimiter: `)`"

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>[0-9][0-9A-Za-z_.]*)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<punct>[-+*/%()])"
    r"|(?P<other>\S))"
)

_INT_SUFFIX = r"(?:u8|u16|u32|u64|u128|usize|i8|i16|i32|i64|i128|isize)?"
_INT_LITERALS = (
    (re.compile(r"0x([0-9a-fA-F_]*[0-9a-fA-F][0-9a-fA-F_]*)" + _INT_SUFFIX), 16),
    (re.compile(r"0o([0-7_]*[0-7][0-7_]*)" + _INT_SUFFIX), 8),
    (re.compile(r"0b([01_]*[01][01_]*)" + _INT_SUFFIX), 2),
    (re.compile(r"([0-9][0-9_]*)" + _INT_SUFFIX), 10),
)

_ADDITIVE = frozenset("+-")
_MULTIPLICATIVE = frozenset("*/%")


@dataclasses.dataclass(frozen=True)
class _Number:
    value: int


@dataclasses.dataclass(frozen=True)
class _Name:
    name: str
    is_field: bool


@dataclasses.dataclass(frozen=True)
class _BinOp:
    op: str
    left: _Node
    right: _Node


_Node = Union[_Number, _Name, _BinOp]


@dataclasses.dataclass(frozen=True)
class _Op:
    symbol: str


@dataclasses.dataclass(frozen=True)
class _Group:
    items: tuple


def _parse_int_literal(text: str) -> int:
    for pattern, base in _INT_LITERALS:
        match = pattern.fullmatch(text)
        if match is not None:
            return int(match.group(1).replace("_", ""), base)
    raise PacketDefinitionError(ERROR_MSG)


def _tokenize(text: str) -> list:
    tokens: list = []
    position = 0
    while position < len(text):
        if text[position:].strip() == "":
            break
        match = _TOKEN_RE.match(text, position)
        if match is None or match.group("other") is not None:
            raise PacketDefinitionError(ERROR_MSG)
        position = match.end()
        if match.group("number") is not None:
            tokens.append(_Number(_parse_int_literal(match.group("number"))))
        elif match.group("ident") is not None:
            tokens.append(match.group("ident"))
        else:
            tokens.append(_Op(match.group("punct")))
    return tokens


def _build_tree(tokens: list) -> list:
    stack: list[list] = [[]]
    for token in tokens:
        if token == _Op("("):
            stack.append([])
        elif token == _Op(")"):
            if len(stack) == 1:
                raise PacketDefinitionError(UNEXPECTED_CLOSE_MSG)
            inner = stack.pop()
            stack[-1].append(_Group(tuple(inner)))
        else:
            stack[-1].append(token)
    if len(stack) > 1:
        raise PacketDefinitionError(UNCLOSED_MSG)
    return stack[0]


def _resolve_names(items: Iterable, field_names: frozenset[str]) -> list:
    """Classify identifiers at one nesting level, checking unknown names against constants."""
    needs_constant = False
    has_constant = False
    resolved: list = []
    for item in items:
        if isinstance(item, str):
            if any(ch.islower() for ch in item):
                if item in field_names:
                    resolved.append(_Name(item, is_field=True))
                else:
                    needs_constant = True
                    resolved.append(_Name(item, is_field=False))
            else:
                has_constant = True
                resolved.append(_Name(item, is_field=False))
        elif isinstance(item, _Group):
            resolved.append(_Group(tuple(_resolve_names(item.items, field_names))))
        else:
            resolved.append(item)
    if needs_constant and not has_constant:
        raise PacketDefinitionError(KEY_ERROR_MSG)
    return resolved


class _Parser:
    def __init__(self, items: list) -> None:
        self._items = items
        self._pos = 0

    def parse(self) -> _Node:
        if not self._items:
            raise PacketDefinitionError("invalid length expression: empty expression")
        node = self._expr()
        if self._pos != len(self._items):
            raise PacketDefinitionError("invalid length expression: unexpected token")
        return node

    def _peek_op(self, allowed: frozenset[str]) -> str | None:
        if self._pos < len(self._items):
            item = self._items[self._pos]
            if isinstance(item, _Op) and item.symbol in allowed:
                return item.symbol
        return None

    def _expr(self) -> _Node:
        node = self._term()
        while (op := self._peek_op(_ADDITIVE)) is not None:
            self._pos += 1
            node = _BinOp(op, node, self._term())
        return node

    def _term(self) -> _Node:
        node = self._atom()
        while (op := self._peek_op(_MULTIPLICATIVE)) is not None:
            self._pos += 1
            node = _BinOp(op, node, self._atom())
        return node

    def _atom(self) -> _Node:
        if self._pos >= len(self._items):
            raise PacketDefinitionError("invalid length expression: expected an operand")
        item = self._items[self._pos]
        self._pos += 1
        if isinstance(item, (_Number, _Name)):
            return item
        if isinstance(item, _Group):
            return _Parser(list(item.items)).parse()
        raise PacketDefinitionError(
            f"invalid length expression: unexpected operator {item.symbol!r}"
        )


def _walk(node: _Node):
    yield node
    if isinstance(node, _BinOp):
        yield from _walk(node.left)
        yield from _walk(node.right)


@dataclasses.dataclass(frozen=True)
class LengthExpr:
    """A parsed length expression, evaluated with unsigned integer arithmetic."""

    text: str
    root: _Node = dataclasses.field(repr=False)

    @property
    def field_references(self) -> frozenset[str]:
        """Names of the packet fields the expression reads."""
        return frozenset(
            node.name for node in _walk(self.root) if isinstance(node, _Name) and node.is_field
        )

    @property
    def constant_references(self) -> frozenset[str]:
        """Names that must be supplied as constants."""
        return frozenset(
            node.name
            for node in _walk(self.root)
            if isinstance(node, _Name) and not node.is_field
        )

    def evaluate(
        self, fields: Mapping[str, int], constants: Mapping[str, int] | None = None
    ) -> int:
        """Compute the length in bytes from field values and constants.

        Raises ``KeyError`` for a missing name, ``ZeroDivisionError`` on division
        by zero and ``ValueError`` when a result would be negative.
        """
        constants = {} if constants is None else constants
        return self._eval(self.root, fields, constants)

    def _eval(self, node: _Node, fields: Mapping[str, int], constants: Mapping[str, int]) -> int:
        if isinstance(node, _Number):
            return node.value
        if isinstance(node, _Name):
            source = fields if node.is_field else constants
            if node.name not in source:
                kind = "field" if node.is_field else "constant"
                raise KeyError(f"no value for {kind} {node.name!r} in length expression")
            value = int(source[node.name])
            if value < 0:
                raise ValueError(f"{node.name!r} has negative value {value}")
            return value
        left = self._eval(node.left, fields, constants)
        right = self._eval(node.right, fields, constants)
        if node.op == "+":
            return left + right
        if node.op == "-":
            if right > left:
                raise ValueError(
                    f"length expression {self.text!r} underflows: {left} - {right}"
                )
            return left - right
        if node.op == "*":
            return left * right
        if node.op == "/":
            return left // right
        return left % right


def parse_length_expr(text: str, field_names: Iterable[str]) -> LengthExpr:
    """Parse ``text`` as a length expression over the given other field names.

    Lower-case names that are not among ``field_names`` are only accepted when
    the same nesting level also uses an upper-case constant.
    Raises :class:`PacketDefinitionError` on invalid expressions.
    """
    names = frozenset(field_names)
    tree = _build_tree(_tokenize(text))
    resolved = _resolve_names(tree, names)
    return LengthExpr(text, _Parser(resolved).parse())