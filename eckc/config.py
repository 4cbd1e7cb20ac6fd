# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lowering configuration.

The defaults reproduce the historical behavior of the compiler: native word of
the host, unsigned division, and assignments that mutate an enclosing binding.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum

from .ir.types import Type, word_type


def host_word_bits() -> int:
	"""Return the host pointer width in bits."""
	return struct.calcsize("P") * 8


class DivisionPolicy(Enum):
	UNSIGNED = "unsigned"
	SIGNED = "signed"


class ScopePolicy(Enum):
	"""How `name = expr` picks its target when `name` is not bound innermost."""

	# Reuse the nearest enclosing binding; declare innermost only when unbound.
	OUTER_MUTATION = "outer-mutation"
	# Always bind in the innermost scope unless already bound there.
	BLOCK_LOCAL = "block-local"


@dataclass(frozen=True)
class LoweringConfig:
	word_bits: int = field(default_factory=host_word_bits)
	division: DivisionPolicy = DivisionPolicy.UNSIGNED
	scope_policy: ScopePolicy = ScopePolicy.OUTER_MUTATION

	def __post_init__(self) -> None:
		# Validates the width.
		word_type(self.word_bits)

	@property
	def word(self) -> Type:
		return word_type(self.word_bits)


__all__ = ["DivisionPolicy", "ScopePolicy", "LoweringConfig", "host_word_bits"]
