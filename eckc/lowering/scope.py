# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lexical scopes for lowering.

A `ScopeChain` is a stack of plain dicts (index 0 is the function-entry scope,
the last entry the innermost block). Names map to `Variable` handles that the
function builder resolves to SSA values; leaving a scope drops the name but not
the variable, so values already read through it stay valid.

Assignment follows outer-mutation semantics: `lookup` walks from the innermost
scope outward, so writing to a name bound in an enclosing block updates that
binding instead of shadowing it. Only `declare` creates a fresh binding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import ScopePolicy
from ..ir.builder import FunctionBuilder
from ..ir.nodes import Variable
from ..ir.types import Type


@dataclass
class LoweringContext:
	"""Session-wide lowering state shared by every function unit."""

	counter: int = 0

	def fresh_variable(self) -> Variable:
		var = Variable(self.counter)
		self.counter += 1
		return var


class ScopeChain:
	def __init__(self, builder: FunctionBuilder, ctx: LoweringContext, word: Type) -> None:
		self.builder = builder
		self.ctx = ctx
		self.word = word
		self._scopes: List[Dict[str, Variable]] = []

	@property
	def depth(self) -> int:
		return len(self._scopes)

	def enter(self) -> None:
		self._scopes.append({})

	def exit(self) -> None:
		if not self._scopes:
			raise RuntimeError("scope chain underflow: exit() without matching enter()")
		self._scopes.pop()

	def declare(self, name: str) -> Variable:
		"""
		Bind `name` to a new variable in the innermost scope.

		Redeclaring a name in the same scope replaces the mapping; the earlier
		variable simply becomes unreachable by name.
		"""
		if not self._scopes:
			raise RuntimeError(f"cannot declare '{name}' outside of any scope")
		var = self.ctx.fresh_variable()
		self.builder.declare_var(var, self.word)
		self._scopes[-1][name] = var
		return var

	def lookup(self, name: str) -> Optional[Variable]:
		for scope in reversed(self._scopes):
			var = scope.get(name)
			if var is not None:
				return var
		return None

	def lookup_innermost(self, name: str) -> Optional[Variable]:
		if not self._scopes:
			return None
		return self._scopes[-1].get(name)

	def resolve_or_declare(self, name: str, policy: ScopePolicy = ScopePolicy.OUTER_MUTATION) -> Variable:
		"""Pick the variable an assignment to `name` writes to."""
		if policy is ScopePolicy.OUTER_MUTATION:
			var = self.lookup(name)
		else:
			var = self.lookup_innermost(name)
		if var is None:
			var = self.declare(name)
		return var


__all__ = ["LoweringContext", "ScopeChain"]
