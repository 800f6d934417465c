"""Per-byte read and write operations used to access bit fields."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable, Sequence


class Endianness(enum.Enum):
    """Byte order of a multi-byte field."""

    BIG = "big"
    LITTLE = "little"
    HOST = "host"


def radix16(value: int) -> str:
    """Return ``value`` in lower-case hexadecimal digits; zero gives an empty string."""
    if value < 0:
        raise ValueError(f"radix16 requires a non-negative value, got {value}")
    return format(value, "x") if value else ""


def _shift_text(expr: str, shift: int) -> str:
    if shift == 0:
        return expr
    if shift < 0:
        return f"{expr} << {-shift}"
    return f"{expr} >> {shift}"


def _apply_shift(value: int, shift: int) -> int:
    return value << -shift if shift < 0 else value >> shift


@dataclasses.dataclass(frozen=True)
class GetOperation:
    """Mask one byte, then shift it into its place within the field value."""

    mask: int
    shiftl: int
    shiftr: int

    @property
    def shift(self) -> int:
        """Net shift: positive shifts right, negative shifts left."""
        return self.shiftr - self.shiftl

    def read(self, byte: int) -> int:
        """Return this byte's contribution to the field value."""
        return _apply_shift(byte & self.mask, self.shift)

    def __str__(self) -> str:
        expr = "{}" if self.mask == 0xFF else f"({{}} & 0x{radix16(self.mask)})"
        return _shift_text(expr, self.shift)


@dataclasses.dataclass(frozen=True)
class SetOperation:
    """Store part of a field value into one byte, keeping the unrelated bits."""

    save_mask: int
    value_mask: int
    shiftl: int
    shiftr: int

    @property
    def shift(self) -> int:
        """Net shift: positive shifts right, negative shifts left."""
        return self.shiftr - self.shiftl

    def write(self, byte: int, value: int) -> int:
        """Return ``byte`` updated with the relevant bits of ``value``."""
        part = _apply_shift(value & self.value_mask, self.shift) & 0xFF
        return ((byte & self.save_mask) | part) & 0xFF

    def __str__(self) -> str:
        if self.value_mask == 0xFF:
            value_expr = "{val}"
        else:
            value_expr = f"({{val}} & 0x{radix16(self.value_mask)})"
        shifted = _shift_text(value_expr, self.shift)
        if self.save_mask != 0x00:
            saved = f"({{packet}} & 0x{radix16(self.save_mask)})"
            return f"{{packet}} = ({saved} | ({shifted}) as u8) as u8"
        return f"{{packet}} = ({shifted}) as u8"


def mask_high_bits(bits: int) -> int:
    """Return a mask of the ``bits`` lowest bits, e.g. 2 gives 0b11."""
    if bits < 0:
        raise ValueError(f"bit count must be non-negative, got {bits}")
    return (1 << bits) - 1


def to_mutator(ops: Iterable[GetOperation]) -> list[SetOperation]:
    """Turn the operations that read a field into those that write it."""
    return [
        SetOperation(
            save_mask=~op.mask & 0xFF,
            value_mask=mask_high_bits((op.mask & 0xFF).bit_count()) << op.shiftl,
            shiftl=op.shiftr,
            shiftr=op.shiftl,
        )
        for op in ops
    ]


def to_little_endian(ops: Sequence[GetOperation]) -> list[GetOperation]:
    """Turn big-endian read operations into little-endian ones."""
    return [
        dataclasses.replace(op, shiftl=be_op.shiftl)
        for op, be_op in zip(ops, reversed(ops))
    ]