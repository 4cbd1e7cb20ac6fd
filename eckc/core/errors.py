# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
User-facing compile errors.

Every error the front end reports to the user derives from `CompileError` and
knows how to turn itself into a `Diagnostic`. Lowering errors are fatal for the
function unit being built: the engine never recovers locally, it lets the
exception propagate to the driver.
"""

from __future__ import annotations

from typing import Any, Optional

from .diagnostics import Diagnostic
from .span import Span


class CompileError(Exception):
	"""Base class for errors reported to the user."""

	code: str = "E0000"
	phase: str = "driver"

	def __init__(self, message: str, span: Optional[Span] = None) -> None:
		super().__init__(message)
		self.message = message
		self.span = span or Span()

	def to_diagnostic(self, file: Optional[str] = None) -> Diagnostic:
		return Diagnostic(
			message=self.message,
			code=self.code,
			phase=self.phase,
			span=self.span.with_file(file),
		)


class ParseError(CompileError):
	"""Source text does not match the grammar."""

	code = "E0100"
	phase = "parser"


class LoweringError(CompileError):
	"""Base class for errors raised while lowering expressions to SSA."""

	code = "E0200"
	phase = "lowering"

	def __init__(self, message: str, loc: Any = None) -> None:
		super().__init__(message, Span.from_loc(loc))


class MalformedLiteral(LoweringError):
	"""An integer literal's text is not a signed 32-bit integer."""

	code = "E0201"

	def __init__(self, text: str, loc: Any = None) -> None:
		super().__init__(f"malformed integer literal {text!r}: expected a signed 32-bit integer", loc)
		self.text = text


class UnboundName(LoweringError):
	"""A name is referenced but no enclosing scope binds it."""

	code = "E0202"

	def __init__(self, name: str, loc: Any = None) -> None:
		super().__init__(f"unbound name '{name}'", loc)
		self.name = name


class MalformedFunctionBody(LoweringError):
	"""A function literal's body is not a block."""

	code = "E0203"

	def __init__(self, kind: str, loc: Any = None) -> None:
		super().__init__(f"function body must be a block, found {kind}", loc)
		self.kind = kind


__all__ = [
	"CompileError",
	"ParseError",
	"LoweringError",
	"MalformedLiteral",
	"UnboundName",
	"MalformedFunctionBody",
]
