# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference interpreter: word arithmetic, division policies and traps.
"""

from __future__ import annotations

import pytest

from eckc.ir import EvalError, FunctionBuilder, I32, I64, Linkage, Module, Signature, run_function, to_signed


def _module_with(body, word=I64, name: str = "f") -> Module:
	"""Build a one-block function whose result is `body(builder)`."""
	b = FunctionBuilder(name, Signature(returns=(word,)))
	entry = b.create_block("entry")
	b.switch_to_block(entry)
	b.seal_block(entry)
	b.return_(body(b))
	module = Module("m", word)
	module.publish(b.finalize())
	return module


def test_to_signed():
	assert to_signed(0xFFFFFFFF, 32) == -1
	assert to_signed(0x7FFFFFFF, 32) == 0x7FFFFFFF
	assert to_signed(1 << 63, 64) == -(1 << 63)
	assert to_signed(-1, 64) == -1


def test_add_wraps_at_word_width():
	m = _module_with(lambda b: b.iadd(b.iconst(I64, (1 << 63) - 1), b.iconst(I64, 1)))
	assert run_function(m, "f") == -(1 << 63)
	m32 = _module_with(lambda b: b.iadd(b.iconst(I32, (1 << 31) - 1), b.iconst(I32, 1)), word=I32)
	assert run_function(m32, "f") == -(1 << 31)


def test_sub_and_mul():
	assert run_function(_module_with(lambda b: b.isub(b.iconst(I64, 3), b.iconst(I64, 5))), "f") == -2
	assert run_function(_module_with(lambda b: b.imul(b.iconst(I64, -6), b.iconst(I64, 7))), "f") == -42


def test_unsigned_division_treats_operands_as_unsigned():
	m = _module_with(lambda b: b.udiv(b.iconst(I64, -1), b.iconst(I64, 2)))
	assert run_function(m, "f") == (1 << 63) - 1


def test_signed_division_truncates_toward_zero():
	assert run_function(_module_with(lambda b: b.sdiv(b.iconst(I64, -7), b.iconst(I64, 2))), "f") == -3
	assert run_function(_module_with(lambda b: b.sdiv(b.iconst(I64, 7), b.iconst(I64, -2))), "f") == -3
	assert run_function(_module_with(lambda b: b.sdiv(b.iconst(I64, -8), b.iconst(I64, -2))), "f") == 4


@pytest.mark.parametrize("op", ["udiv", "sdiv"])
def test_division_by_zero_traps(op):
	m = _module_with(lambda b: getattr(b, op)(b.iconst(I64, 1), b.iconst(I64, 0)))
	with pytest.raises(EvalError, match="division by zero"):
		run_function(m, "f")


def test_func_addr_is_declaration_ordinal():
	module = Module("m", I64)
	module.declare_function("first", Linkage.EXPORT, Signature(returns=(I64,)))
	b = FunctionBuilder("f", Signature(returns=(I64,)))
	entry = b.create_block("entry")
	b.switch_to_block(entry)
	b.seal_block(entry)
	b.return_(b.func_addr(I64, "f"))
	module.publish(b.finalize())
	assert run_function(module, "f") == 2


def test_unknown_function_and_bad_arity():
	m = _module_with(lambda b: b.iconst(I64, 0))
	with pytest.raises(EvalError, match="no function named"):
		run_function(m, "missing")
	with pytest.raises(EvalError, match="expects 0 args"):
		run_function(m, "f", [1])
