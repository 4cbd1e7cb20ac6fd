# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference evaluator for IR modules.

Runs functions block by block, passing edge arguments into block parameters.
Values are held as unsigned words of the module's width so arithmetic wraps
exactly like the machine; results are handed back as signed integers.
"""

from __future__ import annotations

from typing import Dict, Sequence

from . import nodes
from .module import Module


class EvalError(RuntimeError):
	"""Execution trapped (division by zero, runaway control flow, bad call)."""


def to_signed(value: int, bits: int) -> int:
	"""Interpret the low `bits` of `value` as a two's-complement integer."""
	value &= (1 << bits) - 1
	if value >> (bits - 1):
		value -= 1 << bits
	return value


class Interpreter:
	# Programs have no loops; a long walk means a malformed CFG.
	MAX_STEPS = 1_000_000

	def __init__(self, module: Module) -> None:
		self.module = module
		self.bits = module.word.bits
		self.mask = module.word.mask

	def run(self, name: str, args: Sequence[int] = ()) -> int:
		func = self.module.functions.get(name)
		if func is None:
			raise EvalError(f"no function named '{name}' in module {self.module.name}")
		entry = func.entry_block
		if len(args) != len(entry.params):
			raise EvalError(f"{name} expects {len(entry.params)} args, got {len(args)}")
		env: Dict[str, int] = {}
		self._bind(env, entry.params, [a & self.mask for a in args])
		block = entry
		for _ in range(self.MAX_STEPS):
			for instr in block.instructions:
				env[instr.dest] = self._eval_instr(instr, env)
			term = block.terminator
			if isinstance(term, nodes.Return):
				return to_signed(env[term.value], self.bits)
			if isinstance(term, nodes.Jump):
				edge = term.target
			elif isinstance(term, nodes.BrIf):
				edge = term.then if env[term.cond] != 0 else term.els
			else:
				raise EvalError(f"block {block.name} in {name} has no terminator")
			target = func.blocks[edge.target]
			self._bind(env, target.params, [env[a] for a in edge.args])
			block = target
		raise EvalError(f"{name}: step limit exceeded")

	@staticmethod
	def _bind(env: Dict[str, int], params: Sequence[nodes.Param], values: Sequence[int]) -> None:
		if len(params) != len(values):
			raise EvalError(f"edge passes {len(values)} values for {len(params)} params")
		for param, value in zip(params, values):
			env[param.name] = value

	def _eval_instr(self, instr: nodes.Instruction, env: Dict[str, int]) -> int:
		if isinstance(instr, nodes.Iconst):
			return instr.value & self.mask
		if isinstance(instr, nodes.FuncAddr):
			return self.module.ordinal(instr.symbol)
		if isinstance(instr, nodes.Binary):
			return self._eval_binary(instr.op, env[instr.left], env[instr.right])
		raise EvalError(f"unsupported instruction {instr!r}")

	def _eval_binary(self, op: str, a: int, b: int) -> int:
		if op == nodes.IADD:
			return (a + b) & self.mask
		if op == nodes.ISUB:
			return (a - b) & self.mask
		if op == nodes.IMUL:
			return (a * b) & self.mask
		if op in (nodes.UDIV, nodes.SDIV) and b == 0:
			raise EvalError("integer division by zero")
		if op == nodes.UDIV:
			return a // b
		if op == nodes.SDIV:
			sa, sb = to_signed(a, self.bits), to_signed(b, self.bits)
			q = abs(sa) // abs(sb)
			if (sa < 0) != (sb < 0):
				q = -q
			return q & self.mask
		raise EvalError(f"unknown binary opcode {op!r}")


def run_function(module: Module, name: str, args: Sequence[int] = ()) -> int:
	"""Evaluate `name` in `module` with `args` and return its signed result."""
	return Interpreter(module).run(name, args)


__all__ = ["EvalError", "Interpreter", "run_function", "to_signed"]
