# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
IR value types.

The source language is untyped: every value is one native machine word. The IR
still records a type per value so the backend knows the word width it was
built for.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Type:
	name: str
	bits: int

	def __str__(self) -> str:  # pragma: no cover - trivial repr
		return self.name

	@property
	def mask(self) -> int:
		return (1 << self.bits) - 1


I32 = Type("i32", 32)
I64 = Type("i64", 64)

_WORD_TYPES = {32: I32, 64: I64}


def word_type(bits: int) -> Type:
	"""Return the integer type for a native word of `bits` width (32 or 64)."""
	try:
		return _WORD_TYPES[bits]
	except KeyError:
		raise ValueError(f"unsupported word size {bits}; expected 32 or 64") from None


__all__ = ["Type", "I32", "I64", "word_type"]
