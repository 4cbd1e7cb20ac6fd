# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Function literals: published when assigned, inlined otherwise.
"""

from __future__ import annotations

import pytest

from eckc.core.errors import LoweringError, MalformedFunctionBody, UnboundName
from eckc.ir import Linkage, run_function
from eckc.ir.nodes import FuncAddr
from eckc.lowering import lower_program
from eckc.parser import parse_program
from eckc.parser.ast import Assign, FunctionLiteral, IntegerLiteral


def _lower(source: str, config):
	return lower_program(parse_program(source), config=config)


def test_assigned_function_is_published_and_callable(config):
	module = _lower("sub = fn(a, b) { a - b }; 0", config)
	assert list(module.declarations) == ["main", "sub"]
	# Nested units are finished before the enclosing one.
	assert list(module.functions) == ["sub", "main"]
	assert module.linkage("sub") is Linkage.EXPORT
	assert len(module.functions["sub"].signature.params) == 2
	assert run_function(module, "sub", [10, 3]) == 7
	assert run_function(module, "main") == 0


def test_assignment_of_function_yields_its_address(config):
	module = _lower("f = fn() { 1 }", config)
	main = module.functions["main"]
	addrs = [i for b in main.blocks.values() for i in b.instructions if isinstance(i, FuncAddr)]
	assert [a.symbol for a in addrs] == ["f"]
	# main is declared first, so f is the second symbol.
	assert run_function(module, "main") == 2


def test_published_function_name_is_not_a_scalar(config):
	with pytest.raises(UnboundName):
		_lower("f = fn() { 1 }; f", config)


def test_published_function_does_not_capture(config):
	with pytest.raises(UnboundName) as excinfo:
		_lower("x = 1; g = fn() { x }", config)
	assert excinfo.value.name == "x"


def test_function_body_uses_its_own_locals(config):
	module = _lower("twice = fn(n) { m = n * 2; if n { m } else { 100 } }", config)
	assert run_function(module, "twice", [21]) == 42
	assert run_function(module, "twice", [0]) == 100


def test_nested_publication(config):
	module = _lower("outer = fn() { inner = fn(a) { a * 2 }; 5 }; 0", config)
	assert list(module.declarations) == ["main", "outer", "inner"]
	assert run_function(module, "inner", [4]) == 8
	assert run_function(module, "outer") == 5


def test_redefinition_is_rejected(config):
	with pytest.raises(LoweringError, match="already defined"):
		_lower("f = fn() { 1 }; f = fn() { 2 }", config)
	with pytest.raises(LoweringError, match="'main' is already defined"):
		_lower("main = fn() { 0 }", config)


def test_standalone_literal_is_inlined_with_zero_params(run_source):
	assert run_source("fn(a) { a + 5 }") == 5
	assert run_source("x = 3; fn() { x = x * 2 }; x") == 6


def test_standalone_literal_scope_is_closed(run_source):
	with pytest.raises(UnboundName):
		run_source("fn(a) { a }; a")


def test_non_block_body_is_rejected(config):
	bad = FunctionLiteral(("a",), IntegerLiteral("1"))
	with pytest.raises(MalformedFunctionBody, match="found IntegerLiteral"):
		lower_program([bad], config=config)
	with pytest.raises(MalformedFunctionBody):
		lower_program([Assign("f", bad)], config=config)
