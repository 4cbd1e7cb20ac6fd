# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Surface parser: eck source text → list of top-level expressions.

The grammar lives next to this module in `grammar.lark` and is parsed with
lark's LALR engine. The lark tree is then walked by small `_build_*` helpers
that produce the immutable nodes from `eckc.parser.ast`.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from ..core.errors import ParseError
from ..core.span import Span
from .ast import (
	Assign,
	BinaryOp,
	BinOp,
	Block,
	Conditional,
	Expr,
	FunctionLiteral,
	IntegerLiteral,
	Located,
	Nil,
	Reference,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="program",
	propagate_positions=True,
	maybe_placeholders=False,
)

_BINARY_KINDS = {
	"add": BinOp.ADD,
	"sub": BinOp.SUB,
	"mul": BinOp.MUL,
	"div": BinOp.DIV,
}


def parse_program(source: str, *, filename: Optional[str] = None) -> List[Expr]:
	"""
	Parse a whole compilation unit.

	Returns the ordered list of top-level expressions (possibly empty). Syntax
	errors are reported as `ParseError` carrying a 1-based line/column span.
	"""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as exc:
		raise ParseError(_describe(exc), _error_span(exc, source, filename)) from exc
	return [_build_expr(child) for child in tree.children if isinstance(child, Tree)]


def parse_expr(source: str) -> Expr:
	"""Parse source that must contain exactly one expression (test helper)."""
	exprs = parse_program(source)
	if len(exprs) != 1:
		raise ParseError(f"expected exactly one expression, found {len(exprs)}", Span(line=1, column=1))
	return exprs[0]


def _describe(exc: UnexpectedInput) -> str:
	if isinstance(exc, UnexpectedEOF):
		return "unexpected end of input"
	if isinstance(exc, UnexpectedToken):
		if exc.token.type == "$END":
			return "unexpected end of input"
		expected = ", ".join(sorted(exc.expected)) if exc.expected else ""
		suffix = f" (expected one of: {expected})" if expected else ""
		return f"unexpected token {exc.token.value!r}{suffix}"
	if isinstance(exc, UnexpectedCharacters):
		return f"unexpected character {exc.char!r}"
	return str(exc)


def _error_span(exc: UnexpectedInput, source: str, filename: Optional[str]) -> Span:
	line = getattr(exc, "line", -1)
	column = getattr(exc, "column", -1)
	if line is None or line < 1:
		# End-of-input errors carry no position; point just past the last character.
		lines = source.split("\n")
		line = len(lines)
		column = len(lines[-1]) + 1
	return Span(file=filename, line=line, column=column)


def _build_expr(node: Tree | Token) -> Expr:
	if not isinstance(node, Tree):
		raise ValueError(f"unexpected token in expression position: {node!r}")
	kind = _name(node)
	if kind == "integer":
		token = node.children[0]
		return IntegerLiteral(text=str(token), loc=_loc_from_token(token))
	if kind == "reference":
		token = node.children[0]
		return Reference(name=str(token), loc=_loc_from_token(token))
	if kind == "nil":
		return Nil(loc=_loc_from_token(node.children[0]))
	if kind == "neg":
		return _build_neg(node)
	if kind in _BINARY_KINDS:
		return _build_binary_chain(node)
	if kind == "assign":
		name_token, value = node.children
		return Assign(name=str(name_token), value=_build_expr(value), loc=_loc_from_token(name_token))
	if kind == "block":
		return _build_block(node)
	if kind == "conditional":
		return _build_conditional(node)
	if kind == "function":
		return _build_function(node)
	raise ValueError(f"unknown expression node '{kind}'")


def _build_binary_chain(node: Tree) -> Expr:
	"""
	Left-associative operator chain (`a + b - c * d ...`).

	lark nests such a chain down its left spine, one tree per operator. The
	spine is walked with a loop and the nodes are rebuilt innermost first, so
	chain length does not cost Python stack depth.
	"""
	spine: List[Tree] = []
	current: Tree | Token = node
	while isinstance(current, Tree) and _name(current) in _BINARY_KINDS:
		spine.append(current)
		current = current.children[0]
	expr = _build_expr(current)
	for link in reversed(spine):
		rhs = _build_expr(link.children[1])
		expr = BinaryOp(op=_BINARY_KINDS[_name(link)], lhs=expr, rhs=rhs, loc=_loc(link))
	return expr


def _build_neg(node: Tree) -> Expr:
	"""
	Unary minus.

	Applied directly to an unsigned literal it folds into the literal text, so
	`-2147483648` stays representable as a 32-bit literal. Anything else becomes
	`0 - operand`.
	"""
	operand = _build_expr(node.children[0])
	if isinstance(operand, IntegerLiteral) and not operand.text.startswith("-"):
		loc = _loc(node) or operand.loc
		return IntegerLiteral(text=f"-{operand.text}", loc=loc)
	return BinaryOp(op=BinOp.SUB, lhs=IntegerLiteral(text="0", loc=operand.loc), rhs=operand, loc=_loc(node))


def _build_block(node: Tree) -> Block:
	exprs = [_build_expr(child) for child in node.children if isinstance(child, Tree)]
	return Block(exprs=tuple(exprs), loc=_loc(node))


def _build_conditional(node: Tree) -> Conditional:
	parts = [child for child in node.children if isinstance(child, Tree)]
	cond = _build_expr(parts[0])
	then = _build_block(parts[1])
	if len(parts) > 2:
		els: Expr = _build_expr(parts[2])
	else:
		# `if c { ... }` without else evaluates to nil on the false path.
		els = Nil(loc=_loc(node))
	return Conditional(cond=cond, then=then, els=els, loc=_loc(node))


def _build_function(node: Tree) -> FunctionLiteral:
	params: List[str] = []
	body: Optional[Block] = None
	for child in node.children:
		if isinstance(child, Tree) and _name(child) == "params":
			params = [str(tok) for tok in child.children if isinstance(tok, Token) and tok.type == "NAME"]
		elif isinstance(child, Tree) and _name(child) == "block":
			body = _build_block(child)
	if body is None:
		raise ValueError("function literal without a body block")
	return FunctionLiteral(params=tuple(params), body=body, loc=_loc(node))


def _loc(tree: Tree) -> Optional[Located]:
	meta = tree.meta
	if getattr(meta, "empty", True):
		return None
	return Located(line=meta.line, column=meta.column)


def _loc_from_token(token: Token) -> Located:
	return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse_program", "parse_expr"]
