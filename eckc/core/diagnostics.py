# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the parser, lowering and driver phases.

A diagnostic is a message plus optional span/metadata. The driver renders them
either as `file:line:col: severity: message` lines or as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	code: str | None = None
	# Phase label (`parser`, `lowering`, `codegen`, `driver`); lets JSON output
	# and test expectations tell where a failure originated.
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def render(self) -> str:
		"""Human-readable one-line rendering (`file:line:col: error: message`)."""
		code = f" [{self.code}]" if self.code else ""
		lines = [f"{self.span}: {self.severity}: {self.message}{code}"]
		lines.extend(f"  note: {note}" for note in self.notes)
		return "\n".join(lines)

	def to_json(self) -> dict:
		"""Render to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
