# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program image under construction: a named set of published functions.

Functions are first declared (name, linkage, signature) and later defined with
a finished `Function` body. Definition order is preserved; it is also the order
the backend emits functions in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from .nodes import Function, Signature
from .types import I64, Type


class ModuleError(RuntimeError):
	"""Inconsistent declaration/definition of a module symbol."""


class Linkage(Enum):
	"""Symbol visibility in the emitted object."""

	EXPORT = "export"  # externally callable
	LOCAL = "local"  # visible inside this module only


@dataclass
class FuncDecl:
	name: str
	linkage: Linkage
	signature: Signature
	ordinal: int


class Module:
	def __init__(self, name: str, word: Type = I64) -> None:
		self.name = name
		self.word = word
		self.declarations: Dict[str, FuncDecl] = {}
		self.functions: Dict[str, Function] = {}

	def declare_function(self, name: str, linkage: Linkage, signature: Signature) -> FuncDecl:
		"""Declare (or re-declare identically) a function symbol."""
		decl = self.declarations.get(name)
		if decl is not None:
			if decl.signature != signature or decl.linkage != linkage:
				raise ModuleError(f"incompatible redeclaration of function '{name}'")
			return decl
		decl = FuncDecl(name=name, linkage=linkage, signature=signature, ordinal=len(self.declarations) + 1)
		self.declarations[name] = decl
		return decl

	def define_function(self, name: str, func: Function) -> None:
		"""Attach a finished body to a declared symbol; each symbol is defined once."""
		decl = self.declarations.get(name)
		if decl is None:
			raise ModuleError(f"function '{name}' defined before it was declared")
		if name in self.functions:
			raise ModuleError(f"duplicate definition of function '{name}'")
		if func.signature != decl.signature:
			raise ModuleError(f"function '{name}' body does not match its declared signature")
		self.functions[name] = func

	def publish(self, func: Function, linkage: Linkage = Linkage.EXPORT) -> FuncDecl:
		"""Declare and define `func` under its own name."""
		decl = self.declare_function(func.name, linkage, func.signature)
		self.define_function(func.name, func)
		return decl

	def linkage(self, name: str) -> Linkage:
		return self._decl(name).linkage

	def ordinal(self, name: str) -> int:
		"""1-based declaration index of `name`; a stable nonzero handle for the symbol."""
		return self._decl(name).ordinal

	def exported(self) -> List[str]:
		return [name for name, decl in self.declarations.items() if decl.linkage is Linkage.EXPORT]

	def _decl(self, name: str) -> FuncDecl:
		try:
			return self.declarations[name]
		except KeyError:
			raise ModuleError(f"unknown function '{name}'") from None


__all__ = ["Module", "ModuleError", "Linkage", "FuncDecl"]
