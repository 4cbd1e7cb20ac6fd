# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""SSA IR: nodes, the sealed-block function builder, and analyses over it."""

from .builder import BuilderError, FunctionBuilder
from .interp import EvalError, run_function, to_signed
from .module import FuncDecl, Linkage, Module, ModuleError
from .nodes import Function, Signature, Value, Variable
from .printer import format_function, format_module
from .types import I32, I64, Type, word_type
from .verifier import SSAVerifier, VerifyError, verify_function

__all__ = [
	"BuilderError",
	"FunctionBuilder",
	"EvalError",
	"run_function",
	"to_signed",
	"FuncDecl",
	"Linkage",
	"Module",
	"ModuleError",
	"Function",
	"Signature",
	"Value",
	"Variable",
	"format_function",
	"format_module",
	"I32",
	"I64",
	"Type",
	"word_type",
	"SSAVerifier",
	"VerifyError",
	"verify_function",
]
