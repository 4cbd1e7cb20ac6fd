# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Callable

import pytest

from eckc.config import LoweringConfig
from eckc.ir import run_function
from eckc.lowering import lower_program
from eckc.parser import parse_program


@pytest.fixture
def config() -> LoweringConfig:
	"""
	Lowering config pinned to a 64-bit word.

	Arithmetic expectations in tests are written for 64-bit wraparound, so they
	do not depend on the host.
	"""
	return LoweringConfig(word_bits=64)


@pytest.fixture
def run_source(config: LoweringConfig) -> Callable[..., int]:
	"""Parse, lower and evaluate a program with the reference interpreter."""

	def _run(source: str, cfg: LoweringConfig | None = None) -> int:
		module = lower_program(parse_program(source), config=cfg or config)
		return run_function(module, "main")

	return _run
