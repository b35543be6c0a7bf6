# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from atenbind.core.errors import TableError
from atenbind.tables import (
	load_declarations,
	load_formulas,
	parse_declarations,
	parse_formulas,
	split_output_names,
)


def test_parse_declarations_reads_records() -> None:
	records = parse_declarations(
		[
			{"no_name": True},
			{
				"name": "add",
				"method_of": ["Type", "Tensor"],
				"arguments": [
					{"name": "self", "dynamic_type": "Tensor"},
					{"name": "alpha", "dynamic_type": "Scalar", "default": 1},
				],
				"returns": [{"name": "result", "dynamic_type": "Tensor"}],
				"inplace": False,
			},
		]
	)
	assert len(records) == 1
	add = records[0]
	assert add.method_of == ("Type", "Tensor")
	assert add.arguments[0].has_default is False
	assert add.arguments[1].has_default is True
	assert add.arguments[1].default == 1
	assert not add.is_nn
	assert not add.is_out_variant


def test_out_variant_detection() -> None:
	(rec,) = parse_declarations([{"name": "add_out", "method_of": ["namespace"], "arguments": []}])
	assert rec.is_out_variant


@pytest.mark.parametrize(
	"data",
	[
		{"name": "not a list"},
		["not an object"],
		[{"name": "f", "arguments": []}],
		[{"name": "f", "method_of": ["Tensor"], "arguments": [{"name": "self"}]}],
		[{"name": "f", "method_of": ["Tensor"], "arguments": "self"}],
	],
)
def test_structural_problems_are_table_errors(data: object) -> None:
	with pytest.raises(TableError) as info:
		parse_declarations(data)
	assert info.value.table == "declarations"


def test_parse_formulas_keeps_body_order() -> None:
	(rec,) = parse_formulas([{"name": "mul(Tensor self, Tensor other)", "self": "grad * other", "other": "grad * self"}])
	assert rec.header == "mul(Tensor self, Tensor other)"
	assert rec.bodies == (("self", "grad * other"), ("other", "grad * self"))


def test_non_string_body_is_table_error() -> None:
	with pytest.raises(TableError):
		parse_formulas([{"name": "f(Tensor self)", "self": 3}])


def test_load_reports_unreadable_and_invalid_files(tmp_path: Path) -> None:
	with pytest.raises(TableError, match="cannot read"):
		load_declarations(tmp_path / "missing.json")
	broken = tmp_path / "derivatives.json"
	broken.write_text("[{")
	with pytest.raises(TableError, match="not valid JSON"):
		load_formulas(broken)


def test_load_roundtrip(tmp_path: Path) -> None:
	path = tmp_path / "decls.json"
	path.write_text(json.dumps([{"name": "neg", "method_of": ["Tensor"], "arguments": [{"name": "self", "dynamic_type": "Tensor"}], "returns": [{"name": "result", "dynamic_type": "Tensor"}]}]))
	(rec,) = load_declarations(path)
	assert rec.name == "neg"


def test_split_output_names() -> None:
	assert split_output_names("self") == ["self"]
	assert split_output_names("self, other") == ["self", "other"]
	assert split_output_names("input,weight,bias") == ["input", "weight", "bias"]
