# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
SSA IR produced by the lowering engine.

The IR is a control-flow graph of basic blocks. Every value is defined exactly
once: by an instruction, by a block parameter, or (in the entry block) by a
function parameter. Merge points receive their incoming values as block
parameters; each edge into a block passes one argument per parameter (the
block-parameter form of φ nodes).

There are no semantics baked in here; see `eckc.ir.interp` for the reference
evaluator and `eckc.codegen.llvm` for the LLVM mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .types import Type


Value = str

# Binary opcodes (operands and result are native words).
IADD = "iadd"
ISUB = "isub"
IMUL = "imul"
UDIV = "udiv"
SDIV = "sdiv"

BINARY_OPCODES = frozenset({IADD, ISUB, IMUL, UDIV, SDIV})


@dataclass(frozen=True)
class Variable:
	"""Handle for a mutable source-level slot; resolved to SSA values by the builder."""

	index: int

	def __str__(self) -> str:
		return f"var{self.index}"


@dataclass(frozen=True)
class Param:
	name: Value
	type: Type


@dataclass(frozen=True)
class Signature:
	params: tuple[Type, ...] = ()
	returns: tuple[Type, ...] = ()


@dataclass
class Edge:
	"""Control transfer to `target` passing `args` to its block parameters."""

	target: str
	args: List[Value] = field(default_factory=list)


class Instruction:
	pass


@dataclass(frozen=True)
class Iconst(Instruction):
	dest: Value
	type: Type
	value: int


@dataclass(frozen=True)
class Binary(Instruction):
	dest: Value
	op: str
	left: Value
	right: Value


@dataclass(frozen=True)
class FuncAddr(Instruction):
	"""Address of a published function symbol, as a native word."""

	dest: Value
	type: Type
	symbol: str


class Terminator:
	pass


@dataclass(frozen=True)
class Jump(Terminator):
	target: Edge


@dataclass(frozen=True)
class BrIf(Terminator):
	"""Branch to `then` if `cond` is nonzero, otherwise to `els`."""

	cond: Value
	then: Edge
	els: Edge


@dataclass(frozen=True)
class Return(Terminator):
	value: Value


def terminator_edges(term: Optional[Terminator]) -> List[Edge]:
	"""Outgoing edges of a terminator, in branch order."""
	if isinstance(term, Jump):
		return [term.target]
	if isinstance(term, BrIf):
		return [term.then, term.els]
	return []


def instruction_uses(instr: Instruction) -> List[Value]:
	if isinstance(instr, Binary):
		return [instr.left, instr.right]
	return []


def terminator_uses(term: Terminator) -> List[Value]:
	if isinstance(term, BrIf):
		return [term.cond, *term.then.args, *term.els.args]
	if isinstance(term, Jump):
		return list(term.target.args)
	if isinstance(term, Return):
		return [term.value]
	return []


@dataclass
class BasicBlock:
	name: str
	params: List[Param] = field(default_factory=list)
	instructions: List[Instruction] = field(default_factory=list)
	terminator: Optional[Terminator] = None


@dataclass
class Function:
	name: str
	signature: Signature
	entry: str
	blocks: Dict[str, BasicBlock] = field(default_factory=dict)
	# Trivial φ parameters removed during SSA construction: param -> replacement.
	aliases: Dict[Value, Value] = field(default_factory=dict)

	def resolve(self, value: Value) -> Value:
		"""Follow alias chains left behind by trivial φ removal."""
		seen = set()
		while value in self.aliases:
			if value in seen:
				raise RuntimeError(f"alias cycle through {value!r} in function {self.name}")
			seen.add(value)
			value = self.aliases[value]
		return value

	@property
	def entry_block(self) -> BasicBlock:
		return self.blocks[self.entry]


__all__ = [
	"Value",
	"Variable",
	"Param",
	"Signature",
	"Edge",
	"Instruction",
	"Iconst",
	"Binary",
	"FuncAddr",
	"Terminator",
	"Jump",
	"BrIf",
	"Return",
	"BasicBlock",
	"Function",
	"IADD",
	"ISUB",
	"IMUL",
	"UDIV",
	"SDIV",
	"BINARY_OPCODES",
	"terminator_edges",
	"instruction_uses",
	"terminator_uses",
]
