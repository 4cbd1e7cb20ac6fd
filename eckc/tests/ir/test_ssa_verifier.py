# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
SSA verifier tests on hand-built CFGs.
"""

from __future__ import annotations

import pytest

from eckc.ir import I32, I64, Signature, SSAVerifier, VerifyError
from eckc.ir.nodes import BasicBlock, Binary, BrIf, Edge, Function, Iconst, Jump, Param, Return


def _diamond(then_instrs=None, then_edge_args=("v1",), join_params=None, join_ret="v3", extra=None):
	entry = BasicBlock(
		name="entry",
		instructions=[Iconst("v0", I64, 1)],
		terminator=BrIf("v0", Edge("then"), Edge("else")),
	)
	then = BasicBlock(
		name="then",
		instructions=then_instrs if then_instrs is not None else [Iconst("v1", I64, 10)],
		terminator=Jump(Edge("join", list(then_edge_args))),
	)
	els = BasicBlock(
		name="else",
		instructions=[Iconst("v2", I64, 20)],
		terminator=Jump(Edge("join", ["v2"] if join_params is None or join_params else [])),
	)
	join = BasicBlock(
		name="join",
		params=[Param("v3", I64)] if join_params is None else join_params,
		terminator=Return(join_ret),
	)
	blocks = {"entry": entry, "then": then, "else": els, "join": join}
	if extra:
		blocks.update(extra)
	return Function(name="f", signature=Signature(returns=(I64,)), entry="entry", blocks=blocks)


def test_well_formed_diamond_passes():
	SSAVerifier(_diamond()).verify()


def test_double_definition_is_rejected():
	func = _diamond()
	func.blocks["else"].instructions = [Iconst("v1", I64, 20)]
	func.blocks["else"].terminator = Jump(Edge("join", ["v1"]))
	with pytest.raises(VerifyError, match="defined twice"):
		SSAVerifier(func).verify()


def test_use_before_definition_in_block():
	instrs = [Binary("v1", "iadd", "v4", "v4"), Iconst("v4", I64, 1)]
	with pytest.raises(VerifyError, match="before its definition"):
		SSAVerifier(_diamond(then_instrs=instrs)).verify()


def test_use_not_dominated_by_definition():
	func = _diamond(then_edge_args=(), join_params=[], join_ret="v1")
	with pytest.raises(VerifyError, match="not dominated"):
		SSAVerifier(func).verify()


def test_unreachable_block_is_rejected():
	dead = BasicBlock(name="dead", instructions=[Iconst("v9", I64, 0)], terminator=Return("v9"))
	with pytest.raises(VerifyError, match="unreachable blocks dead"):
		SSAVerifier(_diamond(extra={"dead": dead})).verify()


def test_edge_arity_mismatch_is_rejected():
	with pytest.raises(VerifyError, match="passes 0 argument"):
		SSAVerifier(_diamond(then_edge_args=())).verify()


def test_missing_terminator_is_rejected():
	func = _diamond()
	func.blocks["else"].terminator = None
	with pytest.raises(VerifyError, match="missing a terminator"):
		SSAVerifier(func).verify()


def test_unknown_branch_target_is_rejected():
	func = _diamond()
	func.blocks["then"].terminator = Jump(Edge("nowhere", []))
	with pytest.raises(VerifyError, match="unknown block nowhere"):
		SSAVerifier(func).verify()


def test_word_type_mismatch_is_rejected():
	with pytest.raises(VerifyError, match="expected i64"):
		SSAVerifier(_diamond(then_instrs=[Iconst("v1", I32, 10)])).verify()


def test_undefined_value_is_rejected():
	with pytest.raises(VerifyError, match="never defined"):
		SSAVerifier(_diamond(join_ret="v42")).verify()
