# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from atenbind.core.types_core import TypeToken
from atenbind.formula.ast import Name
from atenbind.formula.parser import parse_expr
from atenbind.formula.printer import to_nim
from atenbind.formula.rewriter import FormulaRewriter, references, strip_training_guard
from atenbind.proc_registry import CallSiteNames
from atenbind.signatures import ArgumentSpec, InvocationKind, ProcSignature, ReturnField

SITES = CallSiteNames(methods={"type": "getType", "add_": "add_u"}, functions={"_cat": "u_cat", "max": "max"})

SINGLE = ProcSignature(
	original_name="exp",
	name="exp",
	kind=InvocationKind.INSTANCE_METHOD,
	args=(ArgumentSpec(name="self", original_name="self", type=TypeToken.TENSOR),),
	returns=(ReturnField(name="", original_name="result", type=TypeToken.TENSOR),),
)

TUPLE = ProcSignature(
	original_name="thnn_conv2d_forward",
	name="thnn_conv2d",
	alternate_name="thnn_conv2d",
	kind=InvocationKind.FREE_FUNCTION,
	args=(
		ArgumentSpec(name="self", original_name="self", type=TypeToken.TENSOR),
		ArgumentSpec(name="aend", original_name="end", type=TypeToken.INT64),
	),
	returns=(
		ReturnField(name="output", original_name="output", type=TypeToken.TENSOR),
		ReturnField(name="finput", original_name="finput", type=TypeToken.TENSOR),
		ReturnField(name="self", original_name="grad_input", type=TypeToken.TENSOR),
	),
)


def _rewrite(forward: ProcSignature, text: str) -> str:
	return to_nim(FormulaRewriter(forward, SITES).rewrite(parse_expr(text)))


def test_call_sites_are_renamed() -> None:
	assert _rewrite(SINGLE, "self.type().zeros()") == "self.getType().zeros()"
	assert _rewrite(SINGLE, "_cat(grad, 0)") == "u_cat(grad, 0)"
	assert _rewrite(SINGLE, "at::_cat(grad, 0)") == "u_cat(grad, 0)"
	assert _rewrite(SINGLE, "grad.add_(1)") == "grad.add_u(1)"


def test_method_and_function_tables_are_separate() -> None:
	# `type` is only registered as a method; a free call keeps its name.
	assert _rewrite(SINGLE, "type(grad)") == "type(grad)"
	assert _rewrite(SINGLE, "grad._cat()") == "grad._cat()"


def test_result_placeholders() -> None:
	assert _rewrite(SINGLE, "grad * result") == "grad * fwd_result"
	assert _rewrite(SINGLE, "grad * output") == "grad * fwd_result"
	assert _rewrite(SINGLE, "result1 + result0") == "fwd_result[1] + fwd_result[0]"


def test_placeholders_respect_identifier_boundaries() -> None:
	assert _rewrite(SINGLE, "results + output_size") == "results + output_size"
	assert _rewrite(SINGLE, "self.result") == "self.result"
	assert _rewrite(SINGLE, "grad.result()") == "grad.result()"


def test_tuple_fields_project_off_the_forward_result() -> None:
	assert _rewrite(TUPLE, "f(grad, finput, grad_input)") == "f(grad, fwd_result.finput, fwd_result.self)"
	# Without a tuple return there is nothing to project.
	assert _rewrite(SINGLE, "f(finput)") == "f(finput)"


def test_escaped_arguments_are_renamed() -> None:
	assert _rewrite(TUPLE, "grad.narrow(0, 0, end)") == "grad.narrow(0, 0, aend)"


def test_guard_stripping() -> None:
	expr, guarded = strip_training_guard(parse_expr("training ? foo(self) : bar(self)"))
	assert guarded
	assert to_nim(expr) == "foo(self)"
	expr, guarded = strip_training_guard(parse_expr("foo(training ? self : grad)"))
	assert not guarded
	expr, guarded = strip_training_guard(parse_expr("ns::training ? a : b"))
	assert not guarded


def test_references() -> None:
	expr = parse_expr("cat_backward(grads[0], self.sizes())")
	assert references(expr, "grads")
	assert not references(expr, "grad")
	assert references(parse_expr("f(grad_input_mask)"), "grad_input_mask")
	assert not references(parse_expr("x.grads"), "grads")
	assert references(Name(ident="grads"), "grads")
