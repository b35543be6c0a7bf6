# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Formula header parsing: `name(Type arg, ..., *, Type arg)`.

Only the bare operation name and the argument *types* matter downstream: the
name selects candidate declarations, the positional types disambiguate
overloads. The `*` keyword-only marker is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from atenbind.core.errors import UnsupportedSyntax

_GRAMMAR_PATH = Path(__file__).with_name("header.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	maybe_placeholders=False,
)


@dataclass(frozen=True)
class FormulaHeader:
	"""Parsed header: bare name plus positional argument type tags."""

	name: str
	arg_types: Tuple[str, ...]
	arg_names: Tuple[str, ...] = ()


def _name(tree: Tree) -> str:
	return str(tree.data)


def parse_header(text: str) -> FormulaHeader:
	"""Parse a header string; raises UnsupportedSyntax on malformed input."""
	try:
		tree = _PARSER.parse(text)
	except UnexpectedInput as exc:
		raise UnsupportedSyntax(f"cannot parse formula header '{text}': {exc.__class__.__name__}") from exc
	return _build_header(tree)


def _build_header(tree: Tree) -> FormulaHeader:
	qual = next(c for c in tree.children if isinstance(c, Tree) and _name(c) == "qual_name")
	names = [tok.value for tok in qual.children if isinstance(tok, Token) and tok.type == "NAME"]
	arg_types: List[str] = []
	arg_names: List[str] = []
	params = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "params"), None)
	if params is not None:
		for param in params.children:
			if not isinstance(param, Tree) or _name(param) != "typed_param":
				# `*` separates required from keyword-only arguments.
				continue
			type_node = next(c for c in param.children if isinstance(c, Tree) and _name(c) == "type_spec")
			name_tok = next(c for c in param.children if isinstance(c, Token) and c.type == "NAME")
			arg_types.append(_type_text(type_node))
			arg_names.append(name_tok.value)
	return FormulaHeader(name=names[-1], arg_types=tuple(arg_types), arg_names=tuple(arg_names))


def _type_text(type_spec: Tree) -> str:
	"""Canonical spelling of a type, e.g. `Generator*` or `std::array<bool,2>`."""
	text = ""
	for child in type_spec.children:
		if isinstance(child, Tree) and _name(child) == "type_name":
			text += _type_name_text(child)
		elif isinstance(child, Tree) and _name(child) == "array_suffix":
			size = "".join(tok.value for tok in child.children if isinstance(tok, Token))
			text += f"[{size}]"
		elif isinstance(child, Token):
			text += child.value
	return text


def _type_name_text(tree: Tree) -> str:
	parts = [tok.value for tok in tree.children if isinstance(tok, Token) and tok.type == "NAME"]
	text = "::".join(parts)
	args_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) == "type_args"), None)
	if args_node is not None:
		args = [tok.value for tok in args_node.children if isinstance(tok, Token)]
		text += "<" + ",".join(args) + ">"
	return text


__all__ = ["FormulaHeader", "parse_header"]
