# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sealing discipline of conditional lowering.

The builder logs every branch and seal; a merge block may only be sealed once
both jumps into it exist, and nothing may branch into a block after its seal.
"""

from __future__ import annotations

from eckc.ir import FunctionBuilder, Module, Signature
from eckc.lowering import LoweringContext, LoweringEngine
from eckc.parser import parse_expr


def _lower_logged(source: str, config):
	module = Module("m", config.word)
	builder = FunctionBuilder("main", Signature(returns=(config.word,)))
	entry = builder.create_block("entry")
	builder.switch_to_block(entry)
	builder.seal_block(entry)
	engine = LoweringEngine(builder, module, LoweringContext(), config)
	builder.return_(engine.lower(parse_expr(source)))
	builder.finalize()
	assert engine.scopes.depth == 0
	return builder.events


def _check_sealing(events):
	seals = {}
	branches = []
	for index, event in enumerate(events):
		if event[0] == "seal":
			assert event[1] not in seals, f"{event[1]} sealed twice"
			seals[event[1]] = index
		else:
			branches.append((index, event[1], event[2]))
	for index, _src, dst in branches:
		assert dst in seals
		assert index < seals[dst], f"branch into {dst} after it was sealed"
	merges = [name for name in seals if name.startswith("merge")]
	for merge in merges:
		incoming = [index for index, _src, dst in branches if dst == merge]
		assert len(incoming) == 2
		assert max(incoming) < seals[merge]
	return merges


def test_single_conditional_seals_merge_last(config):
	events = _lower_logged("if 1 { 2 } else { 3 }", config)
	merges = _check_sealing(events)
	assert merges == ["merge2"]
	assert events[-1] == ("seal", "merge2")
	# The else block is sealed as soon as it is entered.
	assert events.index(("seal", "else1")) == events.index(("branch", "entry0", "else1")) + 4


def test_nested_conditionals_seal_every_merge_after_both_jumps(config):
	src = """
	{
		x = 1;
		if if x { 0 } else { 1 } {
			if x { x = 2 } else { x = 3 }
		} else {
			if 0 { 4 } else { if x { 5 } else { 6 } }
		};
		x
	}
	"""
	merges = _check_sealing(_lower_logged(src, config))
	assert len(merges) == 5


def test_conditional_in_operand_position(config):
	merges = _check_sealing(_lower_logged("(if 1 { 2 } else { 3 }) + (if 0 { 4 } else { 5 })", config))
	assert len(merges) == 2


def test_long_if_sequence_seals_each_block_individually(config):
	body = "; ".join(f"if x {{ x = x + {i} }} else {{ x = {i} }}" for i in range(300))
	events = _lower_logged(f"{{ x = 0; {body}; x }}", config)
	merges = _check_sealing(events)
	assert len(merges) == 300
	sealed = [event[1] for event in events if event[0] == "seal"]
	# entry, then else/merge plus the brz fallthrough block per conditional
	assert len(sealed) == len(set(sealed)) == 1 + 3 * 300
