# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structural rewriting of formula bodies.

All rewrites happen in one pass over the expression tree, so no rewrite can
see (and corrupt) the output of another:

  - call sites of registered procs are renamed to their display names
    (`x.type()` -> `x.getType()`, `_cat(...)` -> `u_cat(...)`);
  - `result`/`output` placeholders become the forward result (`result1` ->
    `fwd_result[1]`);
  - when the forward declaration returns a named tuple, a bare field name
    becomes a projection (`finput` -> `fwd_result.finput`).

Module-level helpers cover the shapes that are handled around the rewrite:
the multi-gradient collection, the output-mask token and the training guard.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Dict, Tuple

from atenbind.proc_registry import CallSiteNames
from atenbind.signatures import ProcSignature

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
	Ternary,
	Unary,
	walk,
)

FORWARD_RESULT = "fwd_result"
GRAD_TOKEN = "grad"
MASK_TOKEN = "grad_input_mask"
MULTI_GRAD_TOKEN = "grads"
TRAINING_FLAG = "training"

_PLACEHOLDER = re.compile(r"(?:result|output)(\d*)")

# Parameters every backward procedure declares itself. A forward argument
# spelled the same way is passed under a suffixed name.
BACKWARD_PARAMS = frozenset({GRAD_TOKEN, FORWARD_RESULT, MASK_TOKEN})
SHADOWED_SUFFIX = "_arg"


def backward_arg_name(name: str) -> str:
	"""Name of a forward argument inside the backward procedure."""
	if name in BACKWARD_PARAMS:
		return name + SHADOWED_SUFFIX
	return name


def references(expr: Expr, ident: str) -> bool:
	"""True when an unqualified name `ident` occurs anywhere in `expr`."""
	return any(isinstance(node, Name) and node.ident == ident and not node.qualifier for node in walk(expr))


def strip_training_guard(expr: Expr) -> Tuple[Expr, bool]:
	"""
	Split a leading `training ? a : b` guard.

	Returns the training branch and True when the guard is present; the
	caller emits a runtime check that we are in training mode instead.
	"""
	if isinstance(expr, Ternary) and expr.cond == Name(ident=TRAINING_FLAG):
		return expr.then_expr, True
	return expr, False


class FormulaRewriter:
	"""Rewrites formula bodies written against one forward declaration."""

	def __init__(self, forward: ProcSignature, call_sites: CallSiteNames) -> None:
		self.forward = forward
		self.call_sites = call_sites
		self._fields: Dict[str, str] = {}
		if forward.is_tuple_return:
			self._fields = {r.original_name: r.name for r in forward.returns}
		# Forward arguments whose backward parameter name differs from the
		# formula spelling. `grad` and `grad_input_mask` keep their formula
		# meaning even when a forward argument shares the name.
		self._args: Dict[str, str] = {}
		for arg in forward.args:
			if arg.original_name in (GRAD_TOKEN, MASK_TOKEN):
				continue
			name = backward_arg_name(arg.name)
			if name != arg.original_name:
				self._args[arg.original_name] = name

	def rewrite(self, expr: Expr) -> Expr:
		if isinstance(expr, Call):
			return Call(func=self._rewrite_callee(expr.func), args=tuple(self.rewrite(a) for a in expr.args))
		if isinstance(expr, Name):
			return self._rewrite_name(expr)
		if isinstance(expr, Member):
			return replace(expr, value=self.rewrite(expr.value))
		if isinstance(expr, Index):
			return Index(value=self.rewrite(expr.value), index=self.rewrite(expr.index))
		if isinstance(expr, Unary):
			return replace(expr, operand=self.rewrite(expr.operand))
		if isinstance(expr, Binary):
			return replace(expr, left=self.rewrite(expr.left), right=self.rewrite(expr.right))
		if isinstance(expr, Ternary):
			return Ternary(
				cond=self.rewrite(expr.cond),
				then_expr=self.rewrite(expr.then_expr),
				else_expr=self.rewrite(expr.else_expr),
			)
		if isinstance(expr, ListLiteral):
			return ListLiteral(items=tuple(self.rewrite(i) for i in expr.items))
		if isinstance(expr, Paren):
			return Paren(inner=self.rewrite(expr.inner))
		return expr

	def _rewrite_callee(self, func: Expr) -> Expr:
		if isinstance(func, Member):
			attr = self.call_sites.methods.get(func.attr, func.attr)
			return Member(value=self.rewrite(func.value), attr=attr)
		if isinstance(func, Name):
			return replace(func, ident=self.call_sites.functions.get(func.ident, func.ident))
		return self.rewrite(func)

	def _rewrite_name(self, name: Name) -> Expr:
		if name.qualifier:
			return name
		match = _PLACEHOLDER.fullmatch(name.ident)
		if match is not None:
			if match.group(1):
				return Index(value=Name(ident=FORWARD_RESULT), index=Number(text=match.group(1)))
			return Name(ident=FORWARD_RESULT)
		field = self._fields.get(name.ident)
		if field is not None:
			return Member(value=Name(ident=FORWARD_RESULT), attr=field)
		if name.ident in self._args:
			return Name(ident=self._args[name.ident])
		return name


__all__ = [
	"FormulaRewriter",
	"references",
	"strip_training_guard",
	"backward_arg_name",
	"BACKWARD_PARAMS",
	"GRAD_TOKEN",
	"FORWARD_RESULT",
	"MASK_TOKEN",
	"MULTI_GRAD_TOKEN",
	"TRAINING_FLAG",
]
