# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Print formula expression trees as Nim source.

C++ spellings that differ in Nim are translated here: logical operators,
`%`, `!`, brace lists (`@[...]`) and ternaries (`(if c: a else: b)`). The
`at::` namespace is dropped; any other qualifier is kept as a dotted module
path.
"""

from __future__ import annotations

import re

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

_BINARY_OPS = {
	"&&": "and",
	"||": "or",
	"%": "mod",
}

_UNARY_OPS = {
	"!": "not ",
}

_SYMBOL_PREFIX_OPS = frozenset({"-", "+"})

_BARE_POINT = re.compile(r"\.(?!\d)")

DROPPED_NAMESPACES = frozenset({"at"})


def to_nim(expr: Expr) -> str:
	if isinstance(expr, Name):
		parts = [q for q in expr.qualifier if q not in DROPPED_NAMESPACES]
		return ".".join(parts + [expr.ident])
	if isinstance(expr, Number):
		return _number(expr.text)
	if isinstance(expr, String):
		return expr.text
	if isinstance(expr, Member):
		return f"{to_nim(expr.value)}.{expr.attr}"
	if isinstance(expr, Call):
		args = ", ".join(to_nim(a) for a in expr.args)
		return f"{to_nim(expr.func)}({args})"
	if isinstance(expr, Index):
		return f"{to_nim(expr.value)}[{to_nim(expr.index)}]"
	if isinstance(expr, Unary):
		op = _UNARY_OPS.get(expr.op, expr.op)
		operand = to_nim(expr.operand)
		if isinstance(expr.operand, Unary) and op in _SYMBOL_PREFIX_OPS:
			# `--x` would lex as a single Nim operator.
			return f"{op}({operand})"
		return f"{op}{operand}"
	if isinstance(expr, Binary):
		op = _BINARY_OPS.get(expr.op, expr.op)
		return f"{to_nim(expr.left)} {op} {to_nim(expr.right)}"
	if isinstance(expr, Ternary):
		return f"(if {to_nim(expr.cond)}: {to_nim(expr.then_expr)} else: {to_nim(expr.else_expr)})"
	if isinstance(expr, ListLiteral):
		return "@[" + ", ".join(to_nim(i) for i in expr.items) + "]"
	if isinstance(expr, Paren):
		return f"({to_nim(expr.inner)})"
	raise TypeError(f"cannot print {type(expr).__name__}")


def _number(text: str) -> str:
	# C++ float/long suffixes have no Nim counterpart on untyped literals.
	if text[-1] in "fFlL":
		text = text[:-1]
	# Nim float literals need digits on both sides of the point.
	if text.startswith("."):
		text = "0" + text
	return _BARE_POINT.sub(".0", text)


__all__ = ["to_nim"]
