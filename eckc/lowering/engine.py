# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lowering engine: expression tree -> SSA IR.

The engine walks one expression depth-first and returns the SSA value holding
its result. Instructions go into the `FunctionBuilder` it was constructed with,
in evaluation order: left operand before right, right-hand side before the
assignment target is bound, condition before `then` before `else`.

Names resolve through a `ScopeChain`; the builder turns variable reads and
writes into SSA values (block parameters at merge points).

Conditionals are lowered with an explicit merge block carrying one word
parameter:

	cond:   ... brz c, else      ; falls through into `then`
	then:   ... jump merge(t)
	else:   ... jump merge(e)    ; sealed on entry, its only predecessor is known
	merge(r):                    ; sealed only after both jumps exist

Function literals assigned to a name become separate exported functions in the
module; a function literal anywhere else is inlined as a scoped block with its
parameters bound to zero.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import DivisionPolicy, LoweringConfig
from ..core.errors import LoweringError, MalformedFunctionBody, MalformedLiteral, UnboundName
from ..ir.builder import FunctionBuilder
from ..ir.module import Linkage, Module
from ..ir.nodes import Function, IADD, IMUL, ISUB, SDIV, Signature, UDIV, Value
from ..ir.verifier import SSAVerifier
from ..parser import ast
from .scope import LoweringContext, ScopeChain

_INT_RE = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1

_ARITH_OPS = {
	ast.BinOp.ADD: IADD,
	ast.BinOp.SUB: ISUB,
	ast.BinOp.MUL: IMUL,
}


def parse_i32(text: str, loc=None) -> int:
	"""Parse a literal's text as a signed 32-bit integer or raise `MalformedLiteral`."""
	if not _INT_RE.fullmatch(text):
		raise MalformedLiteral(text, loc)
	value = int(text, 10)
	if not _I32_MIN <= value <= _I32_MAX:
		raise MalformedLiteral(text, loc)
	return value


class LoweringEngine:
	"""
	Lower expressions into the current block of `builder`.

	The caller owns block setup: it creates and seals the entry block, switches
	to it, and emits the final terminator once `lower` returns.
	"""

	def __init__(
		self,
		builder: FunctionBuilder,
		module: Module,
		ctx: Optional[LoweringContext] = None,
		config: Optional[LoweringConfig] = None,
	) -> None:
		self.builder = builder
		self.module = module
		self.ctx = ctx or LoweringContext()
		self.config = config or LoweringConfig(word_bits=module.word.bits)
		self.word = self.config.word
		self.scopes = ScopeChain(builder, self.ctx, self.word)

	def lower(self, expr: ast.Expr) -> Value:
		"""Lower `expr` and return the SSA value of its result."""
		method = getattr(self, f"_visit_expr_{type(expr).__name__}", None)
		if method is None:
			raise NotImplementedError(f"No SSA lowering for expr type {type(expr).__name__}")
		return method(expr)

	def lower_block(self, block: ast.Block, params: Iterable[Tuple[str, Value]] = ()) -> Value:
		"""
		Lower `block` in a new scope; its value is the last expression's (zero if empty).

		`params` are (name, value) pairs declared in the new scope before the body.
		"""
		self.scopes.enter()
		try:
			for name, value in params:
				self.builder.def_var(self.scopes.declare(name), value)
			result: Optional[Value] = None
			for expr in block.exprs:
				result = self.lower(expr)
			if result is None:
				result = self._zero()
			return result
		finally:
			self.scopes.exit()

	# --- variants --------------------------------------------------------

	def _visit_expr_IntegerLiteral(self, expr: ast.IntegerLiteral) -> Value:
		return self.builder.iconst(self.word, parse_i32(expr.text, expr.loc))

	def _visit_expr_Reference(self, expr: ast.Reference) -> Value:
		var = self.scopes.lookup(expr.name)
		if var is None:
			raise UnboundName(expr.name, expr.loc)
		return self.builder.use_var(var)

	def _visit_expr_Nil(self, expr: ast.Nil) -> Value:
		return self._zero()

	def _visit_expr_BinaryOp(self, expr: ast.BinaryOp) -> Value:
		# Walk the left spine with a loop; long `a + b + c ...` chains nest there.
		spine: List[ast.BinaryOp] = []
		node: ast.Expr = expr
		while isinstance(node, ast.BinaryOp):
			spine.append(node)
			node = node.lhs
		acc = self.lower(node)
		for link in reversed(spine):
			rhs = self.lower(link.rhs)
			acc = self.builder.binary(self._arith_op(link.op), acc, rhs)
		return acc

	def _arith_op(self, op: ast.BinOp) -> str:
		if op is ast.BinOp.DIV:
			return SDIV if self.config.division is DivisionPolicy.SIGNED else UDIV
		return _ARITH_OPS[op]

	def _visit_expr_Block(self, expr: ast.Block) -> Value:
		return self.lower_block(expr)

	def _visit_expr_Assign(self, expr: ast.Assign) -> Value:
		if isinstance(expr.value, ast.FunctionLiteral):
			return self._publish_function(expr.name, expr.value)
		value = self.lower(expr.value)
		var = self.scopes.resolve_or_declare(expr.name, self.config.scope_policy)
		self.builder.def_var(var, value)
		return value

	def _visit_expr_Conditional(self, expr: ast.Conditional) -> Value:
		b = self.builder
		cond = self.lower(expr.cond)
		else_block = b.create_block("else")
		merge_block = b.create_block("merge")
		result = b.append_block_param(merge_block, self.word)
		b.brz(cond, else_block)
		then_value = self.lower(expr.then)
		b.jump(merge_block, [then_value])
		b.switch_to_block(else_block)
		b.seal_block(else_block)
		else_value = self.lower(expr.els)
		b.jump(merge_block, [else_value])
		b.switch_to_block(merge_block)
		b.seal_block(merge_block)
		return result

	def _visit_expr_FunctionLiteral(self, expr: ast.FunctionLiteral) -> Value:
		body = _require_block(expr)
		zeros = [self._zero() for _ in expr.params]
		return self.lower_block(body, zip(expr.params, zeros))

	# --- helpers ---------------------------------------------------------

	def _publish_function(self, name: str, fn: ast.FunctionLiteral) -> Value:
		_require_block(fn)
		if name in self.module.declarations:
			raise LoweringError(f"function '{name}' is already defined", fn.loc)
		lower_function(self.module, name, fn.params, fn.body, self.ctx, self.config)
		return self.builder.func_addr(self.word, name)

	def _zero(self) -> Value:
		return self.builder.iconst(self.word, 0)


def _require_block(fn: ast.FunctionLiteral) -> ast.Block:
	if not isinstance(fn.body, ast.Block):
		raise MalformedFunctionBody(type(fn.body).__name__, fn.loc)
	return fn.body


def lower_function(
	module: Module,
	name: str,
	params: Sequence[str],
	body: ast.Expr,
	ctx: Optional[LoweringContext] = None,
	config: Optional[LoweringConfig] = None,
	linkage: Linkage = Linkage.EXPORT,
) -> Function:
	"""
	Build one function unit from `body` and publish it in `module` as `name`.

	Each name in `params` becomes a word parameter of the function; the body's
	value is returned. The finished function is SSA-verified before it is
	defined in the module.
	"""
	config = config or LoweringConfig(word_bits=module.word.bits)
	if config.word != module.word:
		raise ValueError(f"config word {config.word} does not match module word {module.word}")
	if not isinstance(body, ast.Block):
		raise MalformedFunctionBody(type(body).__name__, getattr(body, "loc", None))
	word = config.word
	signature = Signature(params=(word,) * len(params), returns=(word,))
	module.declare_function(name, linkage, signature)

	builder = FunctionBuilder(name, signature)
	entry = builder.create_block("entry")
	builder.switch_to_block(entry)
	incoming = builder.append_block_params_for_function_params(entry)
	builder.seal_block(entry)

	engine = LoweringEngine(builder, module, ctx, config)
	value = engine.lower_block(body, zip(params, incoming))
	builder.return_(value)
	func = builder.finalize()
	SSAVerifier(func).verify()
	module.define_function(name, func)
	return func


def lower_program(
	exprs: Sequence[ast.Expr],
	*,
	config: Optional[LoweringConfig] = None,
	module_name: str = "main",
	entry: str = "main",
) -> Module:
	"""
	Lower a top-level expression sequence into a module.

	The sequence becomes the body of an exported, parameterless `entry`
	function returning the value of the last expression (zero if there is none).
	"""
	config = config or LoweringConfig()
	module = Module(module_name, config.word)
	lower_function(module, entry, (), ast.Block(tuple(exprs)), LoweringContext(), config)
	return module


__all__ = ["LoweringEngine", "lower_function", "lower_program", "parse_i32"]
