# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Strict SSA verifier for finished IR functions.

Enforces:
  - Structural CFG checks: every block terminated, edges target known blocks,
    all blocks reachable, edge argument count matches the target's parameters.
  - Single definition per SSA value (block params and instruction dests).
  - Def-before-use: within a block by position, across blocks by dominance
    (the defining block must dominate the using block).
  - Typed operands: binary operands, branch conditions, edge arguments and
    returned values must have the word type the function was built for.
"""

from __future__ import annotations

from typing import Dict, Set

from . import nodes
from .dom import DominatorAnalysis, DominatorInfo, reachable_blocks
from .types import Type


class VerifyError(RuntimeError):
	"""The IR violates an SSA or CFG invariant."""


class SSAVerifier:
	def __init__(self, func: nodes.Function) -> None:
		self.func = func
		# SSA value -> textual location of its definition
		self.defs: Dict[str, str] = {}
		# SSA value -> block defining it
		self.def_blocks: Dict[str, str] = {}
		self.types: Dict[str, Type] = {}
		self.doms = DominatorInfo()

	def verify(self) -> None:
		self._check_structure()
		self.doms = DominatorAnalysis().compute(self.func)
		for block in self.func.blocks.values():
			self._register_defs(block)
		self._check_entry_params()
		for block in self.func.blocks.values():
			self._visit_block(block)

	def _check_structure(self) -> None:
		func = self.func
		if func.entry not in func.blocks:
			raise VerifyError(f"{func.name}: entry block {func.entry!r} does not exist")
		for block in func.blocks.values():
			if block.terminator is None:
				raise VerifyError(f"{func.name}: block {block.name} is missing a terminator")
			for edge in nodes.terminator_edges(block.terminator):
				target = func.blocks.get(edge.target)
				if target is None:
					raise VerifyError(f"{func.name}: block {block.name} branches to unknown block {edge.target}")
				if len(edge.args) != len(target.params):
					raise VerifyError(
						f"{func.name}: edge {block.name} -> {edge.target} passes {len(edge.args)} "
						f"argument(s) for {len(target.params)} parameter(s)"
					)
		reachable = set(reachable_blocks(func))
		unreachable = [name for name in func.blocks if name not in reachable]
		if unreachable:
			raise VerifyError(f"{func.name}: unreachable blocks {', '.join(unreachable)}")

	def _check_entry_params(self) -> None:
		entry = self.func.entry_block
		expected = list(self.func.signature.params)
		actual = [p.type for p in entry.params]
		if actual != expected:
			raise VerifyError(f"{self.func.name}: entry parameters {actual} do not match signature {expected}")

	def _define(self, value: str, ty: Type, where: str, block: str) -> None:
		if value in self.defs:
			raise VerifyError(f"SSA value {value!r} defined twice: {self.defs[value]} and {where}")
		self.defs[value] = where
		self.def_blocks[value] = block
		self.types[value] = ty

	def _register_defs(self, block: nodes.BasicBlock) -> None:
		for p in block.params:
			self._define(p.name, p.type, f"block_param {block.name}", block.name)
		for instr in block.instructions:
			dest = getattr(instr, "dest", None)
			if dest is None:
				continue
			ty = getattr(instr, "type", None)
			if ty is None:
				# Binary results take the type of their left operand; checked on use.
				ty = self._word()
			self._define(dest, ty, f"block {block.name}, instr {instr!r}", block.name)

	def _visit_block(self, block: nodes.BasicBlock) -> None:
		local: Set[str] = {p.name for p in block.params}
		for instr in block.instructions:
			where = f"block {block.name}, instr {instr!r}"
			if isinstance(instr, nodes.Binary) and instr.op not in nodes.BINARY_OPCODES:
				raise VerifyError(f"unknown binary opcode {instr.op!r} at {where}")
			for value in nodes.instruction_uses(instr):
				self._use(value, where, block.name, local)
			dest = getattr(instr, "dest", None)
			if dest is not None:
				local.add(dest)
		term = block.terminator
		where = f"terminator of {block.name}"
		for value in nodes.terminator_uses(term):
			self._use(value, where, block.name, local)
		for edge in nodes.terminator_edges(term):
			target = self.func.blocks[edge.target]
			for arg, param in zip(edge.args, target.params):
				if self.types[arg] != param.type:
					raise VerifyError(f"{where}: argument {arg} has type {self.types[arg]}, {edge.target} expects {param.type}")

	def _use(self, value: str, where: str, block: str, local: Set[str]) -> None:
		if value not in self.defs:
			raise VerifyError(f"SSA value {value!r} used but never defined at {where}")
		def_block = self.def_blocks[value]
		if def_block == block:
			if value not in local:
				raise VerifyError(f"use of {value!r} before its definition in block {block}")
		elif not self.doms.dominates(def_block, block):
			raise VerifyError(f"use of {value!r} in block {block} not dominated by its definition in {def_block}")
		if self.types[value] != self._word():
			raise VerifyError(f"{where}: {value!r} has type {self.types[value]}, expected {self._word()}")

	def _word(self) -> Type:
		returns = self.func.signature.returns
		if returns:
			return returns[0]
		entry_params = self.func.entry_block.params
		if entry_params:
			return entry_params[0].type
		raise VerifyError(f"{self.func.name}: cannot infer the word type of a function with no params or returns")


def verify_function(func: nodes.Function) -> None:
	SSAVerifier(func).verify()


__all__ = ["SSAVerifier", "VerifyError", "verify_function"]
