# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
SSA IR -> LLVM lowering (llvmlite).

Every function takes and returns native words. Block parameters become phi
nodes at the top of their block (entry parameters are the function arguments);
edge arguments become phi incomings. Blocks are emitted in reverse postorder so
every definition is materialized before the blocks it dominates use it.
"""

from __future__ import annotations

import ctypes
from pathlib import Path
from typing import Dict, Optional, Sequence

from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from ..ir import nodes
from ..ir.dom import reachable_blocks
from ..ir.module import Linkage, Module

_INITIALIZED = False


def _initialize() -> None:
	global _INITIALIZED
	if _INITIALIZED:
		return
	try:
		llvm.initialize()
	except RuntimeError:
		# Newer llvmlite initializes the core itself and rejects the call.
		pass
	llvm.initialize_native_target()
	llvm.initialize_native_asmprinter()
	llvm.initialize_all_targets()
	llvm.initialize_all_asmprinters()
	_INITIALIZED = True


def _target_machine(triple: Optional[str] = None) -> "llvm.TargetMachine":
	_initialize()
	target = llvm.Target.from_triple(triple or llvm.get_default_triple())
	return target.create_target_machine(reloc="pic", codemodel="small")


def lower_module_to_llvm(module: Module, *, triple: Optional[str] = None) -> ir.Module:
	"""Build the LLVM IR module for every function defined in `module`."""
	_initialize()
	word = ir.IntType(module.word.bits)
	llvm_module = ir.Module(name=module.name)
	llvm_module.triple = triple or llvm.get_default_triple()

	funcs: Dict[str, ir.Function] = {}
	for name, decl in module.declarations.items():
		fn_ty = ir.FunctionType(word, [word] * len(decl.signature.params))
		llvm_fn = ir.Function(llvm_module, fn_ty, name=name)
		if decl.linkage is Linkage.LOCAL:
			llvm_fn.linkage = "internal"
		funcs[name] = llvm_fn

	for name, fn in module.functions.items():
		_lower_function(fn, funcs[name], funcs, word)
	return llvm_module


def _lower_function(fn: nodes.Function, llvm_fn: ir.Function, funcs: Dict[str, ir.Function], word: ir.IntType) -> None:
	order = reachable_blocks(fn)
	llvm_blocks = {name: llvm_fn.append_basic_block(name=name) for name in order}
	env: Dict[str, ir.Value] = {}
	phis: Dict[str, list] = {}

	for param, arg in zip(fn.entry_block.params, llvm_fn.args):
		arg.name = param.name
		env[param.name] = arg
	for name in order:
		if name == fn.entry:
			continue
		builder = ir.IRBuilder(llvm_blocks[name])
		phis[name] = []
		for param in fn.blocks[name].params:
			phi = builder.phi(word, name=param.name)
			env[param.name] = phi
			phis[name].append(phi)

	pending = []
	for name in order:
		block = fn.blocks[name]
		builder = ir.IRBuilder(llvm_blocks[name])
		for instr in block.instructions:
			env[instr.dest] = _lower_instr(builder, instr, env, funcs, word)
		term = block.terminator
		if isinstance(term, nodes.Jump):
			builder.branch(llvm_blocks[term.target.target])
		elif isinstance(term, nodes.BrIf):
			cond = builder.icmp_unsigned("!=", env[term.cond], ir.Constant(word, 0))
			builder.cbranch(cond, llvm_blocks[term.then.target], llvm_blocks[term.els.target])
		elif isinstance(term, nodes.Return):
			builder.ret(env[term.value])
		else:
			raise NotImplementedError(f"unsupported terminator in {fn.name}.{name}: {term!r}")
		for edge in nodes.terminator_edges(term):
			pending.append((name, edge))

	# Incomings are added last: an argument may be defined in a block emitted later.
	for src, edge in pending:
		for phi, arg in zip(phis[edge.target], edge.args):
			phi.add_incoming(env[arg], llvm_blocks[src])


def _lower_instr(
	builder: ir.IRBuilder,
	instr: nodes.Instruction,
	env: Dict[str, ir.Value],
	funcs: Dict[str, ir.Function],
	word: ir.IntType,
) -> ir.Value:
	if isinstance(instr, nodes.Iconst):
		return ir.Constant(word, instr.value)
	if isinstance(instr, nodes.FuncAddr):
		return builder.ptrtoint(funcs[instr.symbol], word, name=instr.dest)
	if isinstance(instr, nodes.Binary):
		lhs, rhs = env[instr.left], env[instr.right]
		if instr.op == nodes.IADD:
			return builder.add(lhs, rhs, name=instr.dest)
		if instr.op == nodes.ISUB:
			return builder.sub(lhs, rhs, name=instr.dest)
		if instr.op == nodes.IMUL:
			return builder.mul(lhs, rhs, name=instr.dest)
		if instr.op == nodes.UDIV:
			return builder.udiv(lhs, rhs, name=instr.dest)
		if instr.op == nodes.SDIV:
			return builder.sdiv(lhs, rhs, name=instr.dest)
		raise NotImplementedError(f"unsupported binary op {instr.op}")
	raise NotImplementedError(f"unsupported instruction: {instr!r}")


def _parse_and_verify(llvm_module: ir.Module) -> "llvm.ModuleRef":
	parsed = llvm.parse_assembly(str(llvm_module))
	parsed.verify()
	return parsed


def module_to_llvm_ir(module: Module, *, triple: Optional[str] = None) -> str:
	"""Textual LLVM IR with the target's data layout attached."""
	tm = _target_machine(triple)
	llvm_module = lower_module_to_llvm(module, triple=triple)
	llvm_module.data_layout = str(tm.target_data)
	return str(_parse_and_verify(llvm_module))


def emit_object(module: Module, path: Path | str, *, triple: Optional[str] = None) -> bytes:
	"""Write a position-independent object file for `module` and return its bytes."""
	tm = _target_machine(triple)
	llvm_module = lower_module_to_llvm(module, triple=triple)
	llvm_module.data_layout = str(tm.target_data)
	obj = tm.emit_object(_parse_and_verify(llvm_module))
	Path(path).write_bytes(obj)
	return obj


_CTYPES_WORD = {32: ctypes.c_int32, 64: ctypes.c_int64}


def jit_run(module: Module, name: str, args: Sequence[int] = ()) -> int:
	"""JIT-compile `module` for the host and call `name` with `args`."""
	tm = _target_machine()
	llvm_module = lower_module_to_llvm(module)
	llvm_module.data_layout = str(tm.target_data)
	parsed = _parse_and_verify(llvm_module)
	engine = llvm.create_mcjit_compiler(parsed, tm)
	engine.finalize_object()
	decl = module.declarations[name]
	c_word = _CTYPES_WORD[module.word.bits]
	cfunc_ty = ctypes.CFUNCTYPE(c_word, *([c_word] * len(decl.signature.params)))
	cfunc = cfunc_ty(engine.get_function_address(name))
	# `engine` must stay alive for the duration of the call.
	result = cfunc(*args)
	del engine
	return int(result)


__all__ = ["lower_module_to_llvm", "module_to_llvm_ir", "emit_object", "jit_run"]
