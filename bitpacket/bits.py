"""Compute the per-byte operations that read and write bit fields, and apply them."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence

from bitpacket.ops import GetOperation, to_mutator

MAX_FIELD_BITS = 64


def _bits_in_byte(offset: int, bits_remaining: int) -> int:
    if bits_remaining >= 8:
        return 8 - offset
    return min(8 - offset, bits_remaining)


def get_mask(offset: int, bits_remaining: int) -> tuple[int, int]:
    """Return how many bits are taken from a byte starting ``offset`` bits in, and their mask.

    ``bits_remaining`` larger than what fits in the byte is truncated.
    """
    if not 0 <= offset <= 7:
        raise ValueError(f"bit offset must be in the range 0..7, got {offset}")
    if bits_remaining < 0:
        raise ValueError(f"remaining bit count must be non-negative, got {bits_remaining}")
    count = _bits_in_byte(offset, bits_remaining)
    mask = ((0xFF << (8 - count)) & 0xFF) >> offset
    return count, mask


def get_shiftl(offset: int, size: int, byte_number: int, num_bytes: int) -> int:
    """Left shift applied to byte ``byte_number`` of a field spanning ``num_bytes`` bytes."""
    if num_bytes == 1 or byte_number + 1 == num_bytes:
        return 0
    base_shift = 8 - (num_bytes * 8 - offset - size)
    return base_shift + 8 * (num_bytes - byte_number - 2)


def get_shiftr(offset: int, size: int, byte_number: int, num_bytes: int) -> int:
    """Right shift applied to byte ``byte_number`` of a field spanning ``num_bytes`` bytes."""
    if byte_number + 1 == num_bytes:
        return num_bytes * 8 - offset - size
    return 0


def operations(offset: int, size: int) -> list[GetOperation]:
    """Return the big-endian operations reading ``size`` bits starting ``offset`` bits in.

    ``offset`` must lie in 0..7 and ``size`` in 1..64.
    """
    if not 0 <= offset <= 7:
        raise ValueError(f"bit offset must be in the range 0..7, got {offset}")
    if not 1 <= size <= MAX_FIELD_BITS:
        raise ValueError(f"field size must be in the range 1..{MAX_FIELD_BITS}, got {size}")

    num_bytes = (offset + size - 1) // 8 + 1
    ops = []
    current_offset = offset
    remaining = size
    for byte_number in range(num_bytes):
        consumed, mask = get_mask(current_offset, remaining)
        ops.append(
            GetOperation(
                mask=mask,
                shiftl=get_shiftl(offset, size, byte_number, num_bytes),
                shiftr=get_shiftr(offset, size, byte_number, num_bytes),
            )
        )
        current_offset = 0
        remaining = max(remaining - consumed, 0)
    return ops


def read_field(buffer: Sequence[int], offset: int, ops: Sequence[GetOperation]) -> int:
    """Read a field whose first byte is at ``buffer[offset]``."""
    value = 0
    for index, op in enumerate(ops):
        value |= op.read(buffer[offset + index])
    return value


def write_field(
    buffer: MutableSequence[int], offset: int, ops: Sequence[GetOperation], value: int
) -> None:
    """Store ``value`` in the field whose first byte is at ``buffer[offset]``, in place."""
    for index, sop in enumerate(to_mutator(ops)):
        position = offset + index
        buffer[position] = sop.write(buffer[position], value)