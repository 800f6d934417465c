"""Field type descriptions and the parsing of type names such as ``u12be`` or ``Vec<u8>``."""

from __future__ import annotations

import dataclasses
import enum
import re
from typing import Union

from bitpacket.ops import Endianness

_PRIMITIVE_RE = re.compile(r"u([0-9]+)(be|le|he)?")

_SUFFIX_ENDIANNESS = {
    "be": Endianness.BIG,
    "le": Endianness.LITTLE,
    "he": Endianness.HOST,
}


class PacketDefinitionError(ValueError):
    """Raised when a packet definition is invalid."""


class EndiannessSpecified(enum.Enum):
    """Whether a primitive type name carried an explicit byte order suffix."""

    NO = "no"
    YES = "yes"


@dataclasses.dataclass(frozen=True)
class Primitive:
    """An unsigned integer field of ``size`` bits."""

    name: str
    size: int
    endianness: Endianness


@dataclasses.dataclass(frozen=True)
class Vector:
    """A variable length sequence of ``inner`` elements."""

    inner: FieldType


@dataclasses.dataclass(frozen=True)
class Misc:
    """Any other named type, built from primitive values."""

    name: str


FieldType = Union[Primitive, Vector, Misc]


def parse_ty(ty: str) -> tuple[int, Endianness, EndiannessSpecified] | None:
    """Parse a name of the form ``u<bits>[be|le|he]``.

    Returns the size in bits, the byte order and whether the order was given,
    or ``None`` when ``ty`` is not such a name. Without a suffix the order is big-endian.
    """
    match = _PRIMITIVE_RE.fullmatch(ty)
    if match is None:
        return None
    size = int(match.group(1))
    suffix = match.group(2)
    if suffix is None:
        return size, Endianness.BIG, EndiannessSpecified.NO
    return size, _SUFFIX_ENDIANNESS[suffix], EndiannessSpecified.YES


def make_type(ty_str: str, endianness_important: bool) -> FieldType:
    """Build the field type described by ``ty_str``.

    When ``endianness_important`` is true, primitives wider than 8 bits must
    name their byte order. Raises :class:`PacketDefinitionError` on invalid types.
    """
    parsed = parse_ty(ty_str)
    if parsed is not None:
        size, endianness, specified = parsed
        if not endianness_important or size <= 8 or specified is EndiannessSpecified.YES:
            return Primitive(ty_str, size, endianness)
        raise PacketDefinitionError("endianness must be specified for types of size >= 8")
    if ty_str.startswith("Vec<"):
        if len(ty_str) < 5 or not ty_str.endswith(">"):
            raise PacketDefinitionError(f"invalid type: {ty_str}")
        return Vector(make_type(ty_str[4:-1], endianness_important))
    if ty_str.startswith("&"):
        raise PacketDefinitionError(f"invalid type: {ty_str}")
    return Misc(ty_str)