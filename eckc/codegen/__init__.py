# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""LLVM backend built on llvmlite."""

from .llvm import emit_object, jit_run, lower_module_to_llvm, module_to_llvm_ir

__all__ = ["emit_object", "jit_run", "lower_module_to_llvm", "module_to_llvm_ir"]
