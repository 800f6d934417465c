# bitpacket

`bitpacket` provides the building blocks for reading and writing bit fields
in byte buffers. Fields can be 1 to 64 bits wide and need not start on a
byte boundary. The package also parses field type names such as `u12be` or
`Vec<u8>`, and small arithmetic length expressions such as `"banana + 7"`.

## Modules

| Module | Contents |
| --- | --- |
| `bitpacket.ops` | `Endianness`, `GetOperation`, `SetOperation`, `to_mutator`, `to_little_endian`, `mask_high_bits`, `radix16` |
| `bitpacket.bits` | `operations`, `get_mask`, `get_shiftl`, `get_shiftr`, `read_field`, `write_field` |
| `bitpacket.fieldtypes` | `parse_ty`, `make_type`, `Primitive`, `Vector`, `Misc`, `EndiannessSpecified`, `PacketDefinitionError` |
| `bitpacket.lengthexpr` | `parse_length_expr`, `LengthExpr` |

## Reading and writing bit fields

`operations(offset, size)` computes the per-byte mask-and-shift steps that
read a big-endian field of `size` bits starting `offset` bits into its first
byte. `offset` must be in 0..7 and `size` in 1..64; otherwise it raises
`ValueError`. `read_field` and `write_field` apply those steps to a buffer,
with the field's first byte at the given index. `write_field` changes the
buffer in place and keeps the bits around the field:

```python
from bitpacket.bits import operations, read_field, write_field

buf = bytearray(2)
ops = operations(6, 6)   # 6 bits spanning two bytes, starting at bit 6
write_field(buf, 0, ops, 0b101101)
bytes(buf)               # b'\x02\xd0'
read_field(buf, 0, ops)  # 0b101101
```

`to_little_endian` turns big-endian read steps into little-endian ones, and
`to_mutator` turns read steps into the `SetOperation`s that write the field
(`write_field` calls it for you):

```python
from bitpacket.bits import operations, read_field
from bitpacket.ops import to_little_endian

read_field(b"\x34\x12", 0, to_little_endian(operations(0, 16)))  # 0x1234
```

Each `GetOperation` and `SetOperation` renders as a readable expression,
handy when checking a layout by eye:

```python
from bitpacket.ops import GetOperation, SetOperation

str(GetOperation(mask=0b1111, shiftl=2, shiftr=0))
# '({} & 0xf) << 2'
str(SetOperation(save_mask=0b11, value_mask=0b1111, shiftl=2, shiftr=0))
# '{packet} = (({packet} & 0x3) | (({val} & 0xf) << 2) as u8) as u8'
```

`get_mask`, `get_shiftl` and `get_shiftr` are the helpers `operations` is
built from; `mask_high_bits(n)` gives a mask of the `n` lowest bits and
`radix16` formats a number in lower-case hex (zero gives an empty string).

## Field type names

`parse_ty` recognises names of the form `u<bits>` with an optional `be`,
`le` or `he` suffix and returns the size, the `Endianness` and whether the
order was given; anything else gives `None`. Without a suffix the order is
big-endian.

```python
from bitpacket.fieldtypes import parse_ty

parse_ty("u21le")  # (21, Endianness.LITTLE, EndiannessSpecified.YES)
parse_ty("u9")     # (9, Endianness.BIG, EndiannessSpecified.NO)
parse_ty("i21be")  # None
```

`make_type(ty_str, endianness_important)` builds a `Primitive`, a `Vector`
(for `Vec<...>`, recursively) or a `Misc` for any other name. With
`endianness_important` true, a primitive wider than 8 bits without a byte
order suffix raises `PacketDefinitionError`; so does a name starting with
`&` or a malformed `Vec<`.

```python
from bitpacket.fieldtypes import make_type

make_type("Vec<u16be>", True)  # Vector(inner=Primitive(name='u16be', size=16, ...))
make_type("u16", True)         # raises PacketDefinitionError
```

## Length expressions

`parse_length_expr(text, field_names)` accepts integer literals, names,
`+ - * / %` and parentheses. Lower-case names among `field_names` are field
references; all-upper-case names are constants. A lower-case name that is
not a listed field is only accepted when the same nesting level also uses a
constant; otherwise, as with non-integer literals, unbalanced parentheses or
malformed expressions, it raises `PacketDefinitionError`.

`LengthExpr.evaluate(fields, constants)` computes the result with unsigned
integer arithmetic. It raises `KeyError` for a missing value,
`ZeroDivisionError` on division by zero and `ValueError` when a subtraction
would go below zero. `field_references` and `constant_references` list the
names the expression uses.

```python
from bitpacket.lengthexpr import parse_length_expr

expr = parse_length_expr("banana + 7", ["banana"])
expr.evaluate({"banana": 4})  # 11

parse_length_expr("(LEN - 2) * 4", []).evaluate({}, {"LEN": 6})  # 16
parse_length_expr("tomato", ["banana"])  # raises PacketDefinitionError
```

## What it does not do

`bitpacket` has no way to declare a whole packet layout, and no packet
view objects: nothing here lays fields out one after another, works out a
packet's minimum size, locates a payload, or reads and writes fields by
name. Those jobs are left to the caller, who can combine `operations`,
`read_field`, `write_field`, `make_type` and `LengthExpr` to build them.