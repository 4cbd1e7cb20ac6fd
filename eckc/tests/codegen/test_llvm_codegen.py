# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
LLVM backend: IR shape, JIT execution and object emission.
"""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from eckc.codegen import emit_object, jit_run, lower_module_to_llvm, module_to_llvm_ir
from eckc.config import DivisionPolicy, LoweringConfig
from eckc.ir import FunctionBuilder, I64, Linkage, Module, Signature, run_function
from eckc.lowering import lower_program
from eckc.parser import parse_program


def _module(source: str, config: LoweringConfig) -> Module:
	return lower_program(parse_program(source), config=config)


def test_block_params_become_phis(config):
	text = str(lower_module_to_llvm(_module("x = 0; if 1 { x = 5 } else { x = 7 }; x", config)))
	# llvmlite pads operand types differently between releases.
	assert re.search(r"phi\s+i64", text)
	assert re.search(r"icmp\s+ne\s+i64", text)


def test_division_opcode_follows_policy(config):
	assert re.search(r"udiv\s+i64", str(lower_module_to_llvm(_module("9 / 2", config))))
	signed = LoweringConfig(word_bits=64, division=DivisionPolicy.SIGNED)
	assert re.search(r"sdiv\s+i64", str(lower_module_to_llvm(_module("9 / 2", signed))))


def test_function_address_is_ptrtoint(config):
	assert "ptrtoint" in str(lower_module_to_llvm(_module("f = fn() { 1 }", config)))


def test_local_linkage_is_internal():
	b = FunctionBuilder("helper", Signature(returns=(I64,)))
	entry = b.create_block("entry")
	b.switch_to_block(entry)
	b.seal_block(entry)
	b.return_(b.iconst(I64, 3))
	module = Module("m", I64)
	module.publish(b.finalize(), Linkage.LOCAL)
	assert "define internal i64" in module_to_llvm_ir(module)


def test_module_ir_carries_data_layout(config):
	text = module_to_llvm_ir(_module("1", config))
	assert "target datalayout" in text
	assert "define i64 @main()" in text


@pytest.mark.parametrize(
	"source",
	[
		"42",
		"-2147483648",
		"2147483647 * 2147483647 * 4",
		"-8 / 2",
		"x = 0; if 1 { x = 5 } else { x = 7 }; x * 2",
		"x = 10; y = if x { x = x + 1; x * 2 } else { 0 }; x + y",
		"a = 1; b = 0; if a { if b { 1 } else { 2 } } else { 3 }",
		"fn(a) { a + 5 }",
	],
)
def test_jit_matches_interpreter(source, config):
	module = _module(source, config)
	assert jit_run(module, "main") == run_function(module, "main")


def test_jit_calls_published_function(config):
	module = _module("sub = fn(a, b) { a - b }; 0", config)
	assert jit_run(module, "sub", [10, 3]) == 7


def test_jit_on_32_bit_words():
	module = _module("2147483647 + 1", LoweringConfig(word_bits=32))
	assert jit_run(module, "main") == -2147483648


def test_emit_object_writes_file(tmp_path: Path, config):
	out = tmp_path / "prog.o"
	obj = emit_object(_module("x = 2; x * 21", config), out)
	assert obj
	assert out.read_bytes() == obj
