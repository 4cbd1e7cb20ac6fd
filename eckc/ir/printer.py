# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Textual dump of the SSA IR (used by `--dump-ssa` and in test failure output)."""

from __future__ import annotations

from . import nodes
from .module import Module


def format_edge(edge: nodes.Edge) -> str:
	args = ", ".join(edge.args)
	return f"{edge.target}({args})" if args else edge.target


def format_term(term: nodes.Terminator | None) -> str:
	if isinstance(term, nodes.Jump):
		return f"  jump {format_edge(term.target)}"
	if isinstance(term, nodes.BrIf):
		return f"  brif {term.cond}, {format_edge(term.then)}, {format_edge(term.els)}"
	if isinstance(term, nodes.Return):
		return f"  return {term.value}"
	return "  <missing terminator>"


def format_instr(instr: nodes.Instruction) -> str:
	if isinstance(instr, nodes.Iconst):
		return f"  {instr.dest} = iconst.{instr.type} {instr.value}"
	if isinstance(instr, nodes.Binary):
		return f"  {instr.dest} = {instr.op} {instr.left}, {instr.right}"
	if isinstance(instr, nodes.FuncAddr):
		return f"  {instr.dest} = func_addr.{instr.type} @{instr.symbol}"
	return "  <invalid instr>"


def format_block(block: nodes.BasicBlock) -> str:
	params = ", ".join(f"{p.name}: {p.type}" for p in block.params)
	lines = [f"{block.name}({params}):" if params else f"{block.name}:"]
	for instr in block.instructions:
		lines.append(format_instr(instr))
	lines.append(format_term(block.terminator))
	return "\n".join(lines)


def format_function(fn: nodes.Function, linkage: str | None = None) -> str:
	params = ", ".join(str(t) for t in fn.signature.params)
	returns = ", ".join(str(t) for t in fn.signature.returns)
	prefix = f"{linkage} " if linkage else ""
	header = f"{prefix}function {fn.name}({params}) -> {returns} {{ entry = {fn.entry} }}"
	blocks = "\n".join(format_block(block) for block in fn.blocks.values())
	return f"{header}\n{blocks}"


def format_module(module: Module) -> str:
	return "\n\n".join(
		format_function(fn, module.linkage(name).value) for name, fn in module.functions.items()
	)


__all__ = ["format_function", "format_module", "format_block"]
