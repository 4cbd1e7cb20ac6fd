# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

A Span carries optional file/line/column info. Parser locations (lark tokens,
tree metadata, or our own `Located`) can be converted with `Span.from_loc`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from an existing parser/location object.

		If `loc` is already a Span, it is returned unchanged (with `file` filled
		in when the span has none).
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			if loc.file is None and file is not None:
				return cls(file=file, line=loc.line, column=loc.column)
			return loc
		return cls(
			file=getattr(loc, "file", None) or file,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
		)

	def with_file(self, file: Optional[str]) -> "Span":
		if self.file is not None or file is None:
			return self
		return Span(file=file, line=self.line, column=self.column)

	def __str__(self) -> str:
		line = "?" if self.line is None else str(self.line)
		column = "?" if self.column is None else str(self.column)
		return f"{self.file or '<input>'}:{line}:{column}"


__all__ = ["Span"]
