# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from atenbind.formula.parser import parse_expr
from atenbind.formula.printer import to_nim


def _nim(text: str) -> str:
	return to_nim(parse_expr(text))


def test_plain_expressions_print_back() -> None:
	assert _nim("grad * other") == "grad * other"
	assert _nim("grad.sum(0).neg()") == "grad.sum(0).neg()"
	assert _nim("(grad - self) / 2") == "(grad - self) / 2"


def test_operator_translation() -> None:
	assert _nim("!a && b || c % 2") == "not a and b or c mod 2"
	assert _nim("a == b") == "a == b"


def test_namespace_and_literals() -> None:
	assert _nim("at::zeros({2, 3})") == "zeros(@[2, 3])"
	assert _nim("std::sqrt(x)") == "std.sqrt(x)"
	assert _nim("grad * 0.5f") == "grad * 0.5"
	assert _nim("self.norm(p, \"fro\")") == 'self.norm(p, "fro")'


def test_non_guard_ternary() -> None:
	assert _nim("dim >= 0 ? dim : -dim") == "(if dim >= 0: dim else: -dim)"


def test_nested_prefix_operators_stay_separate() -> None:
	assert _nim("- -grad") == "-(-grad)"
	assert _nim("-(-grad)") == "-(-grad)"
	assert _nim("!!mask") == "not not mask"


def test_float_literals_get_both_digits() -> None:
	assert _nim("grad * 1.") == "grad * 1.0"
	assert _nim("grad * .5") == "grad * 0.5"
	assert _nim("grad * 2.f") == "grad * 2.0"
	assert _nim("grad * 1.e-3") == "grad * 1.0e-3"
	assert _nim("grad * 0.25") == "grad * 0.25"
