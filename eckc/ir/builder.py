# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Incremental SSA function builder.

The builder lets a front end treat source variables as mutable slots
(`declare_var` / `def_var` / `use_var`) while it emits straight SSA IR. Reads
of a variable are resolved on the fly following Braun et al., "Simple and
Efficient Construction of Static Single Assignment Form" (CC 2013):

  - a read in the block that defined the variable returns that definition;
  - a read in a *sealed* block with one predecessor recurses into it;
  - a read in a sealed block with several predecessors adds a block parameter
    (the φ) and asks every predecessor for its incoming value;
  - a read in an *unsealed* block adds an incomplete block parameter that is
    filled in when the block is sealed.

Sealing a block declares that all of its predecessors are known. Branching
into a block that is already sealed would invalidate that promise, so it is
rejected with `BuilderError`. Every branch and seal is also recorded in
`events`, in order, so callers can audit the sealing discipline.

Block parameters declared by the caller (`append_block_param`) always come
first; parameters introduced for variables are appended after them, and the
builder appends the matching edge arguments itself.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .nodes import (
	BINARY_OPCODES,
	BasicBlock,
	IADD,
	IMUL,
	ISUB,
	SDIV,
	UDIV,
	Binary,
	BrIf,
	Edge,
	FuncAddr,
	Function,
	Iconst,
	Instruction,
	Jump,
	Param,
	Return,
	Signature,
	Terminator,
	Value,
	Variable,
	terminator_edges,
)
from .types import Type


class BuilderError(RuntimeError):
	"""Misuse of the builder API (a bug in the caller, never a user error)."""


Event = Tuple[str, ...]


class FunctionBuilder:
	"""
	Build one `Function` block by block.

	The first block created becomes the entry block. Typical use:

		b = FunctionBuilder("main", Signature(returns=(I64,)))
		entry = b.create_block()
		b.switch_to_block(entry)
		b.seal_block(entry)
		...
		b.return_(value)
		func = b.finalize()
	"""

	def __init__(self, name: str, signature: Signature) -> None:
		self.func = Function(name=name, signature=signature, entry="")
		self.events: List[Event] = []
		self._current: Optional[str] = None
		self._value_counter = 0
		self._block_counter = 0
		self._sealed: set[str] = set()
		self._preds: Dict[str, List[Tuple[str, Edge]]] = {}
		self._explicit_params: Dict[str, int] = {}
		self._var_types: Dict[Variable, Type] = {}
		self._defs: Dict[str, Dict[Variable, Value]] = {}
		self._incomplete: Dict[str, List[Tuple[Variable, Value]]] = {}
		self._finalized = False

	# --- blocks ----------------------------------------------------------

	def create_block(self, hint: str = "block") -> str:
		"""Create a new empty block and return its name (the first one is the entry)."""
		self._check_open()
		name = f"{hint}{self._block_counter}"
		self._block_counter += 1
		self.func.blocks[name] = BasicBlock(name=name)
		self._preds[name] = []
		self._explicit_params[name] = 0
		self._defs[name] = {}
		if not self.func.entry:
			self.func.entry = name
		return name

	def switch_to_block(self, block: str) -> None:
		"""Direct subsequent instructions into `block`."""
		self._check_block(block)
		self._current = block

	@property
	def current_block(self) -> Optional[str]:
		return self._current

	def is_sealed(self, block: str) -> bool:
		return block in self._sealed

	def predecessors(self, block: str) -> List[str]:
		self._check_block(block)
		return [pred for pred, _ in self._preds[block]]

	def seal_block(self, block: str) -> None:
		"""
		Declare that every predecessor of `block` has been emitted.

		Completes the incomplete block parameters recorded for reads that
		happened while the block was still open.
		"""
		self._check_open()
		self._check_block(block)
		if block in self._sealed:
			raise BuilderError(f"block {block} is already sealed")
		for var, param in self._incomplete.pop(block, []):
			self._complete_param(block, var, param)
		self._sealed.add(block)
		self.events.append(("seal", block))

	def append_block_param(self, block: str, ty: Type) -> Value:
		"""
		Declare an explicit block parameter; edges into `block` must pass a value for it.

		Explicit parameters must be declared before any branch targets the block.
		"""
		self._check_open()
		self._check_block(block)
		bb = self.func.blocks[block]
		if self._preds[block] or len(bb.params) != self._explicit_params[block]:
			raise BuilderError(f"cannot add a parameter to block {block} after it gained predecessors or variable parameters")
		value = self._add_param(block, ty)
		self._explicit_params[block] += 1
		return value

	def append_block_params_for_function_params(self, block: str) -> List[Value]:
		"""Add one parameter per signature parameter (use on the entry block)."""
		if block != self.func.entry:
			raise BuilderError(f"function parameters belong on the entry block, not {block}")
		return [self.append_block_param(block, ty) for ty in self.func.signature.params]

	def block_params(self, block: str) -> List[Value]:
		self._check_block(block)
		return [p.name for p in self.func.blocks[block].params]

	# --- variables -------------------------------------------------------

	def declare_var(self, var: Variable, ty: Type) -> None:
		self._check_open()
		if var in self._var_types:
			raise BuilderError(f"variable {var} declared twice")
		self._var_types[var] = ty

	def def_var(self, var: Variable, value: Value) -> None:
		"""Record `value` as the current definition of `var` in the current block."""
		self._check_var(var)
		block = self._require_current()
		self._defs[block][var] = value

	def use_var(self, var: Variable) -> Value:
		"""Return the SSA value holding the current definition of `var`."""
		self._check_var(var)
		block = self._require_current()
		return self._read(var, block)

	def _read(self, var: Variable, block: str) -> Value:
		value = self._defs[block].get(var)
		if value is None:
			value = self._read_recursive(var, block)
		return self.func.resolve(value)

	def _read_recursive(self, var: Variable, block: str) -> Value:
		ty = self._var_types[var]
		if block not in self._sealed:
			value = self._add_param(block, ty)
			self._incomplete.setdefault(block, []).append((var, value))
		else:
			preds = self._preds[block]
			if not preds:
				# Never defined on any path into the entry block: reads as zero.
				value = self._zero_at_top(block, ty)
			elif len(preds) == 1:
				value = self._read(var, preds[0][0])
			else:
				param = self._add_param(block, ty)
				# Define before visiting predecessors so cycles terminate.
				self._defs[block][var] = param
				value = self._complete_param(block, var, param)
		self._defs[block][var] = value
		return value

	def _complete_param(self, block: str, var: Variable, param: Value) -> Value:
		"""Collect the incoming value of `var` from every predecessor of `block`."""
		operands = [self._read(var, pred) for pred, _ in self._preds[block]]
		distinct = {op for op in operands if op != param}
		if len(distinct) <= 1:
			# Trivial φ: every edge carries the same value (or only the φ itself).
			if distinct:
				replacement = distinct.pop()
			else:
				replacement = self._zero_at_top(self.func.entry, self._var_types[var])
			self._remove_param(block, param)
			self.func.aliases[param] = replacement
			self._defs[block][var] = replacement
			return replacement
		for (_, edge), operand in zip(self._preds[block], operands):
			edge.args.append(operand)
		return param

	# --- instructions ----------------------------------------------------

	def iconst(self, ty: Type, value: int) -> Value:
		"""Materialize an integer constant, wrapped to the width of `ty`."""
		dest = self._new_value()
		self._emit(Iconst(dest=dest, type=ty, value=_wrap_signed(value, ty)))
		return dest

	def binary(self, op: str, lhs: Value, rhs: Value) -> Value:
		if op not in BINARY_OPCODES:
			raise BuilderError(f"unknown binary opcode {op!r}")
		dest = self._new_value()
		self._emit(Binary(dest=dest, op=op, left=lhs, right=rhs))
		return dest

	def iadd(self, lhs: Value, rhs: Value) -> Value:
		return self.binary(IADD, lhs, rhs)

	def isub(self, lhs: Value, rhs: Value) -> Value:
		return self.binary(ISUB, lhs, rhs)

	def imul(self, lhs: Value, rhs: Value) -> Value:
		return self.binary(IMUL, lhs, rhs)

	def udiv(self, lhs: Value, rhs: Value) -> Value:
		return self.binary(UDIV, lhs, rhs)

	def sdiv(self, lhs: Value, rhs: Value) -> Value:
		return self.binary(SDIV, lhs, rhs)

	def func_addr(self, ty: Type, symbol: str) -> Value:
		dest = self._new_value()
		self._emit(FuncAddr(dest=dest, type=ty, symbol=symbol))
		return dest

	# --- terminators -----------------------------------------------------

	def jump(self, block: str, args: Sequence[Value] = ()) -> None:
		edge = self._edge_to(block, args)
		self._terminate(Jump(target=edge))

	def brz(self, cond: Value, block: str, args: Sequence[Value] = ()) -> str:
		"""
		Branch to `block` if `cond` is zero; otherwise fall through.

		The fallthrough path continues in a fresh block whose only predecessor is
		this branch; it becomes the current block and is sealed immediately.
		Returns the fallthrough block's name.
		"""
		source = self._require_current()
		self._check_unterminated(source)
		fallthrough = self.create_block()
		els = self._edge_to(block, args)
		then = self._edge_to(fallthrough, ())
		self._terminate(BrIf(cond=cond, then=then, els=els))
		self.switch_to_block(fallthrough)
		self.seal_block(fallthrough)
		return fallthrough

	def return_(self, value: Value) -> None:
		self._terminate(Return(value=value))

	def _edge_to(self, target: str, args: Sequence[Value]) -> Edge:
		source = self._require_current()
		self._check_block(target)
		if target in self._sealed:
			raise BuilderError(f"branch from {source} to sealed block {target}")
		expected = self._explicit_params[target]
		if len(args) != expected:
			raise BuilderError(f"block {target} takes {expected} argument(s), got {len(args)}")
		edge = Edge(target=target, args=list(args))
		self._preds[target].append((source, edge))
		self.events.append(("branch", source, target))
		return edge

	# --- finishing -------------------------------------------------------

	def finalize(self) -> Function:
		"""
		Check that the function is complete and return it.

		Every block must be sealed and terminated. Operands that referred to
		removed trivial φ parameters are rewritten to their replacements.
		"""
		self._check_open()
		unsealed = [b for b in self.func.blocks if b not in self._sealed]
		if unsealed:
			raise BuilderError(f"function {self.func.name}: unsealed blocks {', '.join(unsealed)}")
		open_blocks = [name for name, bb in self.func.blocks.items() if bb.terminator is None]
		if open_blocks:
			raise BuilderError(f"function {self.func.name}: blocks without terminator {', '.join(open_blocks)}")
		if self.func.aliases:
			self._apply_aliases()
		self._finalized = True
		return self.func

	def _apply_aliases(self) -> None:
		resolve = self.func.resolve
		for bb in self.func.blocks.values():
			bb.instructions = [_rewrite_instr(instr, resolve) for instr in bb.instructions]
			term = bb.terminator
			if isinstance(term, BrIf) and resolve(term.cond) != term.cond:
				term = replace(term, cond=resolve(term.cond))
			elif isinstance(term, Return) and resolve(term.value) != term.value:
				term = replace(term, value=resolve(term.value))
			for edge in terminator_edges(term):
				edge.args[:] = [resolve(arg) for arg in edge.args]
			bb.terminator = term

	# --- helpers ---------------------------------------------------------

	def _new_value(self) -> Value:
		value = f"v{self._value_counter}"
		self._value_counter += 1
		return value

	def _add_param(self, block: str, ty: Type) -> Value:
		value = self._new_value()
		self.func.blocks[block].params.append(Param(name=value, type=ty))
		return value

	def _remove_param(self, block: str, value: Value) -> None:
		bb = self.func.blocks[block]
		bb.params = [p for p in bb.params if p.name != value]

	def _zero_at_top(self, block: str, ty: Type) -> Value:
		dest = self._new_value()
		self.func.blocks[block].instructions.insert(0, Iconst(dest=dest, type=ty, value=0))
		return dest

	def _emit(self, instr: Instruction) -> None:
		block = self._require_current()
		self._check_unterminated(block)
		self.func.blocks[block].instructions.append(instr)

	def _terminate(self, term: Terminator) -> None:
		block = self._require_current()
		self._check_unterminated(block)
		self.func.blocks[block].terminator = term

	def _require_current(self) -> str:
		self._check_open()
		if self._current is None:
			raise BuilderError("no current block; call switch_to_block first")
		return self._current

	def _check_unterminated(self, block: str) -> None:
		if self.func.blocks[block].terminator is not None:
			raise BuilderError(f"block {block} is already terminated")

	def _check_block(self, block: str) -> None:
		if block not in self.func.blocks:
			raise BuilderError(f"unknown block {block!r}")

	def _check_var(self, var: Variable) -> None:
		if var not in self._var_types:
			raise BuilderError(f"variable {var} used before declare_var")

	def _check_open(self) -> None:
		if self._finalized:
			raise BuilderError(f"function {self.func.name} is already finalized")


def _wrap_signed(value: int, ty: Type) -> int:
	"""Two's-complement wrap of `value` into the signed range of `ty`."""
	value &= ty.mask
	if value >> (ty.bits - 1):
		value -= 1 << ty.bits
	return value


def _rewrite_instr(instr: Instruction, resolve) -> Instruction:
	if isinstance(instr, Binary):
		left, right = resolve(instr.left), resolve(instr.right)
		if (left, right) != (instr.left, instr.right):
			return replace(instr, left=left, right=right)
	return instr


__all__ = ["FunctionBuilder", "BuilderError"]
