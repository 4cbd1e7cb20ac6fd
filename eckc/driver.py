# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
eckc command line driver.

Reads one source file, parses it, lowers it to SSA IR and hands the result to
the LLVM backend. Failures are reported as diagnostics, either human readable
on stderr or, with --json, as a single JSON document on stdout:

	{"exit_code": 1, "diagnostics": [{"phase": ..., "message": ..., ...}]}
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .codegen import emit_object, jit_run, module_to_llvm_ir
from .config import DivisionPolicy, LoweringConfig, ScopePolicy, host_word_bits
from .core.diagnostics import Diagnostic
from .core.errors import CompileError
from .core.span import Span
from .ir.printer import format_module
from .lowering import lower_program
from .parser import parse_program

ENTRY_POINT = "main"


def _build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="eckc", description="Compile an eck program to a native object file")
	parser.add_argument("source", type=Path, help="Path to the eck source file")
	parser.add_argument("-o", "--output", type=Path, help="Write a PIC object file to the given path")
	parser.add_argument("--emit-ir", type=Path, help="Write LLVM IR to the given path")
	parser.add_argument("--dump-ssa", action="store_true", help="Print the SSA IR to stderr")
	parser.add_argument("--run", action="store_true", help="JIT-run the entry function and print its result")
	parser.add_argument("--json", action="store_true", help="Emit diagnostics as JSON on stdout")
	parser.add_argument(
		"--target-word-bits",
		type=int,
		choices=(32, 64),
		default=None,
		help="Native word width (default: host pointer width)",
	)
	parser.add_argument("--triple", type=str, default=None, help="Target triple for object/IR output (default: host)")
	parser.add_argument(
		"--signed-div",
		action="store_true",
		help="Lower `/` to signed division (default: unsigned)",
	)
	parser.add_argument(
		"--block-local-assign",
		action="store_true",
		help="Assignments bind in the innermost block instead of mutating enclosing bindings",
	)
	return parser


def config_from_args(args: argparse.Namespace) -> LoweringConfig:
	return LoweringConfig(
		word_bits=args.target_word_bits or host_word_bits(),
		division=DivisionPolicy.SIGNED if args.signed_div else DivisionPolicy.UNSIGNED,
		scope_policy=ScopePolicy.BLOCK_LOCAL if args.block_local_assign else ScopePolicy.OUTER_MUTATION,
	)


def _report(diags: List[Diagnostic], as_json: bool) -> int:
	if as_json:
		print(json.dumps({"exit_code": 1, "diagnostics": [d.to_json() for d in diags]}))
	else:
		for d in diags:
			print(d.render(), file=sys.stderr)
	return 1


def main(argv: Optional[List[str]] = None) -> int:
	"""
	Compile one eck file. Returns the process exit code (0 on success, 1 on
	any reported error).
	"""
	args = _build_arg_parser().parse_args(argv)
	source_path: Path = args.source
	file_label = str(source_path)

	try:
		source = source_path.read_text(encoding="utf-8")
	except OSError as exc:
		diag = Diagnostic(
			message=f"cannot read source file: {exc.strerror or exc}",
			code="E0001",
			phase="driver",
			span=Span(file=file_label),
		)
		return _report([diag], args.json)

	config = config_from_args(args)
	phase = "parser"
	try:
		exprs = parse_program(source, filename=file_label)
		phase = "lowering"
		module = lower_program(exprs, config=config, entry=ENTRY_POINT)
	except CompileError as err:
		return _report([err.to_diagnostic(file_label)], args.json)
	except RecursionError:
		diag = Diagnostic(
			message="program is nested too deeply to compile",
			code="E0002",
			phase=phase,
			span=Span(file=file_label),
		)
		return _report([diag], args.json)

	if args.dump_ssa:
		print(format_module(module), file=sys.stderr)
	if args.emit_ir is not None:
		args.emit_ir.write_text(module_to_llvm_ir(module, triple=args.triple))
	if args.output is not None:
		emit_object(module, args.output, triple=args.triple)

	payload: dict = {"exit_code": 0, "diagnostics": []}
	if args.run:
		result = jit_run(module, ENTRY_POINT)
		payload["result"] = result
		if not args.json:
			print(result)
	if args.json:
		print(json.dumps(payload))
	return 0


__all__ = ["main", "config_from_args"]
