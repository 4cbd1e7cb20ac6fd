# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Lowering from the expression tree to SSA IR."""

from .engine import LoweringEngine, lower_function, lower_program, parse_i32
from .scope import LoweringContext, ScopeChain

__all__ = ["LoweringEngine", "lower_function", "lower_program", "parse_i32", "LoweringContext", "ScopeChain"]
