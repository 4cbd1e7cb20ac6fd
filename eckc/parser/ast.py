# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Expression tree for the eck language.

The language is untyped and expression-only: every node produces exactly one
native machine word when lowered. The node set is closed; `Expr` is the union
of all variants and `EXPR_VARIANTS` enumerates them so consumers can check that
they handle every kind.

Nodes are immutable. Source locations are carried for diagnostics only and do
not take part in equality, so two trees parsed from differently formatted text
compare equal when they mean the same thing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Located:
	line: int
	column: int


class BinOp(Enum):
	"""Arithmetic operators (all operate on native words)."""

	ADD = "+"
	SUB = "-"
	MUL = "*"
	DIV = "/"


@dataclass(frozen=True)
class IntegerLiteral:
	text: str
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Reference:
	name: str
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Block:
	exprs: Tuple["Expr", ...] = ()
	loc: Optional[Located] = field(default=None, compare=False, repr=False)

	def __post_init__(self) -> None:
		# Accept any sequence from callers but store a tuple so the node stays hashable.
		if not isinstance(self.exprs, tuple):
			object.__setattr__(self, "exprs", tuple(self.exprs))


@dataclass(frozen=True)
class Conditional:
	cond: "Expr"
	then: "Expr"
	els: "Expr"
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Assign:
	name: str
	value: "Expr"
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
	op: BinOp
	lhs: "Expr"
	rhs: "Expr"
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionLiteral:
	"""
	`fn(a, b) { ... }`.

	`body` is expected to be a `Block`; the lowering engine rejects anything else
	with `MalformedFunctionBody`.
	"""

	params: Tuple[str, ...]
	body: "Expr"
	loc: Optional[Located] = field(default=None, compare=False, repr=False)

	def __post_init__(self) -> None:
		if not isinstance(self.params, tuple):
			object.__setattr__(self, "params", tuple(self.params))


@dataclass(frozen=True)
class Nil:
	loc: Optional[Located] = field(default=None, compare=False, repr=False)


Expr = Union[
	IntegerLiteral,
	Reference,
	Block,
	Conditional,
	Assign,
	BinaryOp,
	FunctionLiteral,
	Nil,
]

EXPR_VARIANTS: Tuple[type, ...] = (
	IntegerLiteral,
	Reference,
	Block,
	Conditional,
	Assign,
	BinaryOp,
	FunctionLiteral,
	Nil,
)


__all__ = [
	"Located",
	"BinOp",
	"IntegerLiteral",
	"Reference",
	"Block",
	"Conditional",
	"Assign",
	"BinaryOp",
	"FunctionLiteral",
	"Nil",
	"Expr",
	"EXPR_VARIANTS",
]
