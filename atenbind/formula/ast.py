# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Expression tree for formula bodies.

Nodes are immutable; rewriting builds new trees with `dataclasses.replace`.
`Paren` is kept as a node so printing reproduces the author's grouping
without any precedence bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple


class Expr:
	"""Base class of all formula expression nodes."""


@dataclass(frozen=True)
class Name(Expr):
	ident: str
	qualifier: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Number(Expr):
	text: str


@dataclass(frozen=True)
class String(Expr):
	text: str


@dataclass(frozen=True)
class Member(Expr):
	value: Expr
	attr: str


@dataclass(frozen=True)
class Call(Expr):
	func: Expr
	args: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Index(Expr):
	value: Expr
	index: Expr


@dataclass(frozen=True)
class Unary(Expr):
	op: str
	operand: Expr


@dataclass(frozen=True)
class Binary(Expr):
	op: str
	left: Expr
	right: Expr


@dataclass(frozen=True)
class Ternary(Expr):
	cond: Expr
	then_expr: Expr
	else_expr: Expr


@dataclass(frozen=True)
class ListLiteral(Expr):
	items: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Paren(Expr):
	inner: Expr


def children(expr: Expr) -> Tuple[Expr, ...]:
	if isinstance(expr, Member):
		return (expr.value,)
	if isinstance(expr, Call):
		return (expr.func,) + expr.args
	if isinstance(expr, Index):
		return (expr.value, expr.index)
	if isinstance(expr, Unary):
		return (expr.operand,)
	if isinstance(expr, Binary):
		return (expr.left, expr.right)
	if isinstance(expr, Ternary):
		return (expr.cond, expr.then_expr, expr.else_expr)
	if isinstance(expr, ListLiteral):
		return expr.items
	if isinstance(expr, Paren):
		return (expr.inner,)
	return ()


def walk(expr: Expr) -> Iterator[Expr]:
	"""Pre-order traversal, left to right."""
	yield expr
	for child in children(expr):
		yield from walk(child)


def callee_name(call: Call) -> str | None:
	"""Bare name a call site refers to (`x.f(...)` and `ns::f(...)` give `f`)."""
	if isinstance(call.func, Member):
		return call.func.attr
	if isinstance(call.func, Name):
		return call.func.ident
	return None


def call_names(expr: Expr) -> List[str]:
	"""Names of every call site, in source order, duplicates kept."""
	names: List[str] = []
	for node in walk(expr):
		if isinstance(node, Call):
			name = callee_name(node)
			if name is not None:
				names.append(name)
	return names


__all__ = [
	"Expr",
	"Name",
	"Number",
	"String",
	"Member",
	"Call",
	"Index",
	"Unary",
	"Binary",
	"Ternary",
	"ListLiteral",
	"Paren",
	"children",
	"walk",
	"callee_name",
	"call_names",
]
