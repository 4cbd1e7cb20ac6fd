# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Core support shared by all phases: spans, diagnostics and user-facing errors.
"""

from .span import Span
from .diagnostics import Diagnostic
from .errors import (
	CompileError,
	ParseError,
	LoweringError,
	MalformedLiteral,
	UnboundName,
	MalformedFunctionBody,
)

__all__ = [
	"Span",
	"Diagnostic",
	"CompileError",
	"ParseError",
	"LoweringError",
	"MalformedLiteral",
	"UnboundName",
	"MalformedFunctionBody",
]
