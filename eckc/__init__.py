# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
eckc: compiler for the eck expression language.

Pipeline:
  parser:    source text -> expression tree (lark)
  lowering:  expression tree -> SSA IR (scope chain + sealed-block builder)
  ir:        SSA IR, verifier and reference interpreter
  codegen:   SSA IR -> LLVM IR / object file (llvmlite)
"""

__all__ = ["parser", "lowering", "ir", "codegen", "config", "driver"]
