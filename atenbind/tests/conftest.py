# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Any, Dict, List

import pytest

from atenbind.proc_registry import ProcRegistry, build_registry, default_helpers
from atenbind.signatures import ingest_declarations
from atenbind.tables import parse_declarations


def _arg(name: str, dynamic_type: str, **extra: Any) -> Dict[str, Any]:
	return {"name": name, "dynamic_type": dynamic_type, **extra}


def _ret(name: str, dynamic_type: str = "Tensor") -> Dict[str, Any]:
	return {"name": name, "dynamic_type": dynamic_type}


DECLARATIONS: List[Dict[str, Any]] = [
	{"name": "dot", "method_of": ["Tensor", "namespace"], "arguments": [_arg("self", "Tensor"), _arg("tensor", "Tensor")], "returns": [_ret("result")]},
	{"name": "neg", "method_of": ["Tensor"], "arguments": [_arg("self", "Tensor")], "returns": [_ret("result")]},
	{"name": "abs", "method_of": ["Tensor"], "arguments": [_arg("self", "Tensor")], "returns": [_ret("result")]},
	{"name": "exp", "method_of": ["Tensor"], "arguments": [_arg("self", "Tensor")], "returns": [_ret("result")]},
	{"name": "atan2", "method_of": ["Tensor", "namespace"], "arguments": [_arg("self", "Tensor"), _arg("other", "Tensor")], "returns": [_ret("result")]},
	{"name": "sum", "method_of": ["Tensor"], "arguments": [_arg("self", "Tensor")], "returns": [_ret("result")]},
	{"name": "sum", "method_of": ["Tensor"], "arguments": [_arg("self", "Tensor"), _arg("dim", "int64_t")], "returns": [_ret("result")]},
	{
		"name": "thnn_conv2d_forward",
		"mode": "NN",
		"method_of": ["namespace"],
		"arguments": [_arg("self", "Tensor"), _arg("weight", "Tensor"), _arg("kernel_size", "IntList")],
		"returns": [_ret("output"), _ret("finput"), _ret("fgrad_input")],
	},
	{
		"name": "thnn_conv2d_backward",
		"mode": "NN",
		"method_of": ["namespace"],
		"arguments": [
			_arg("grad_output", "Tensor"),
			_arg("self", "Tensor"),
			_arg("weight", "Tensor"),
			_arg("kernel_size", "IntList"),
			_arg("finput", "Tensor"),
			_arg("fgrad_input", "Tensor"),
			_arg("output_mask", "std::array<bool,3>"),
		],
		"returns": [_ret("grad_input"), _ret("grad_weight"), _ret("grad_bias")],
	},
	{"name": "thnn_conv2d", "mode": "NN", "method_of": ["namespace"], "arguments": [_arg("self", "Tensor")], "returns": [_ret("output")]},
	{
		"name": "dropout",
		"method_of": ["Tensor"],
		"arguments": [_arg("self", "Tensor"), _arg("p", "double"), _arg("train", "bool", default=False)],
		"returns": [_ret("result")],
	},
	{"name": "cat", "method_of": ["namespace"], "arguments": [_arg("tensors", "TensorList"), _arg("dim", "int64_t", default=0)], "returns": [_ret("result")]},
	{"name": "cat_out", "method_of": ["namespace"], "arguments": [_arg("result", "Tensor"), _arg("tensors", "TensorList")], "returns": [_ret("result")]},
	{"name": "unsupported", "method_of": ["namespace"], "arguments": [_arg("x", "std::vector<Tensor>")], "returns": [_ret("result")]},
]

FORMULAS: List[Dict[str, Any]] = [
	{"name": "dot(Tensor self, Tensor tensor)", "self": "grad * tensor", "tensor": "grad * self"},
	{"name": "neg(Tensor self)", "self": "grad.neg()"},
	{"name": "abs(Tensor self)", "self": "not_implemented(\"abs\")"},
	{"name": "exp(Tensor self)", "self": "grad * unknown_fn(result)"},
	{"name": "atan2(Tensor self, Tensor other)", "self, other": "atan2_backward(grad, self, other, grad_input_mask)"},
	{"name": "sum(Tensor self, int64_t dim)", "self": "grad.neg()"},
	{
		"name": "thnn_conv2d(Tensor self, Tensor weight, IntList kernel_size)",
		"self, weight": "thnn_conv2d_backward(grad, self, weight, kernel_size, finput, fgrad_input, grad_input_mask)",
	},
	{"name": "dropout(Tensor self, double p, bool train)", "self": "training ? grad.neg() : grad"},
	{"name": "cat(TensorList tensors, int64_t dim)", "tensors": "cat_tensors_backward(grads[0], dim)"},
	{"name": "missing(Tensor self)", "self": "grad"},
]


@pytest.fixture
def declarations_data() -> List[Dict[str, Any]]:
	return [dict(d) for d in DECLARATIONS]


@pytest.fixture
def formulas_data() -> List[Dict[str, Any]]:
	return [dict(f) for f in FORMULAS]


@pytest.fixture
def registry(declarations_data: List[Dict[str, Any]]) -> ProcRegistry:
	procs, _ = ingest_declarations(parse_declarations(declarations_data))
	return build_registry(procs, helpers=default_helpers())
