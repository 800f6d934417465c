"""Bit field access for byte buffers, field type names and length expressions."""

__version__ = "0.1.0"

__all__ = ["bits", "fieldtypes", "lengthexpr", "ops"]