# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Formula body parser: expression text -> `formula.ast` tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from atenbind.core.errors import UnsupportedSyntax

from .ast import (
	Binary,
	Call,
	Expr,
	Index,
	ListLiteral,
	Member,
	Name,
	Number,
	Paren,
	String,
	Ternary,
	Unary,
)

_GRAMMAR_PATH = Path(__file__).with_name("expr.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_EXPR_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	maybe_placeholders=False,
)


def parse_expr(source: str) -> Expr:
	"""Parse one formula body; raises UnsupportedSyntax when the grammar rejects it."""
	try:
		tree = _EXPR_PARSER.parse(source)
	except UnexpectedInput as exc:
		raise UnsupportedSyntax(f"cannot parse formula '{source}': {exc.__class__.__name__}") from exc
	return _build_expr(tree)


def _name(node: Tree) -> str:
	return str(node.data)


def _build_expr(node: Tree | Token) -> Expr:
	if isinstance(node, Token):
		raise TypeError(f"unexpected token {node.type} in expression")
	kind = _name(node)
	children = list(node.children)
	if kind == "qual_name":
		parts = [tok.value for tok in children if isinstance(tok, Token)]
		return Name(ident=parts[-1], qualifier=tuple(parts[:-1]))
	if kind == "number":
		return Number(text=children[0].value)
	if kind == "string":
		return String(text=children[0].value)
	if kind == "paren":
		return Paren(inner=_build_expr(children[0]))
	if kind == "list_lit":
		return ListLiteral(items=_build_arguments(children))
	if kind == "member":
		return Member(value=_build_expr(children[0]), attr=children[1].value)
	if kind == "call":
		return Call(func=_build_expr(children[0]), args=_build_arguments(children[1:]))
	if kind == "index":
		return Index(value=_build_expr(children[0]), index=_build_expr(children[1]))
	if kind == "unop":
		return Unary(op=children[0].value, operand=_build_expr(children[1]))
	if kind == "binop":
		return Binary(op=children[1].value, left=_build_expr(children[0]), right=_build_expr(children[2]))
	if kind == "cond":
		return Ternary(
			cond=_build_expr(children[0]),
			then_expr=_build_expr(children[1]),
			else_expr=_build_expr(children[2]),
		)
	raise TypeError(f"unexpected expression node {kind}")


def _build_arguments(children: List[Tree | Token]) -> tuple[Expr, ...]:
	args_node = next((c for c in children if isinstance(c, Tree) and _name(c) == "arguments"), None)
	if args_node is None:
		return ()
	return tuple(_build_expr(child) for child in args_node.children)


__all__ = ["parse_expr"]
