# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser package: grammar, expression tree and the lark-based front end.
"""

from . import ast
from .parser import parse_program, parse_expr

__all__ = ["ast", "parse_program", "parse_expr"]
