# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Input tables: declaration records and formula records.

Both tables are JSON documents holding a list of objects (the YAML sources of
ATen are converted upstream). Loading validates structure only; semantic
problems (unknown types, missing `self`, ...) are entry-local and surface
later as diagnostics. Structural problems raise `TableError`, which is fatal
for the whole run.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Tuple

from atenbind.core.errors import TableError

DECLARATIONS = "declarations"
DERIVATIVES = "derivatives"


@dataclass(frozen=True)
class ArgumentRecord:
	name: str
	dynamic_type: str
	has_default: bool = False
	default: Any = None


@dataclass(frozen=True)
class ReturnRecord:
	name: str
	dynamic_type: str


@dataclass(frozen=True)
class DeclarationRecord:
	"""One operation of the declaration table."""

	name: str
	method_of: Tuple[str, ...]
	arguments: Tuple[ArgumentRecord, ...]
	returns: Tuple[ReturnRecord, ...]
	mode: str | None = None
	deprecated: bool = False
	inplace: bool = False
	out: bool = False

	@property
	def is_nn(self) -> bool:
		return self.mode == "NN"

	@property
	def is_out_variant(self) -> bool:
		return self.out or "_out" in self.name


@dataclass(frozen=True)
class FormulaRecord:
	"""
	One entry of the formula table.

	`header` is the `name(args)` string; `bodies` keeps the (output names,
	expression) pairs in table order. Output names may be comma-joined.
	"""

	header: str
	bodies: Tuple[Tuple[str, str], ...]


def _read_json(path: Path, table: str) -> Any:
	try:
		text = path.read_text()
	except OSError as exc:
		raise TableError(f"cannot read {table} table {path}: {exc}", table=table) from exc
	try:
		return json.loads(text)
	except json.JSONDecodeError as exc:
		raise TableError(f"{table} table {path} is not valid JSON: {exc}", table=table) from exc


def _expect_list(data: Any, table: str) -> List[Any]:
	if not isinstance(data, list):
		raise TableError(f"{table} table must be a list of records, got {type(data).__name__}", table=table)
	return data


def _expect_str(record: dict, key: str, table: str, owner: str) -> str:
	value = record.get(key)
	if not isinstance(value, str):
		raise TableError(f"{owner}: field '{key}' must be a string", table=table)
	return value


def _parse_argument(raw: Any, owner: str) -> ArgumentRecord:
	if not isinstance(raw, dict):
		raise TableError(f"{owner}: arguments must be objects", table=DECLARATIONS)
	name = _expect_str(raw, "name", DECLARATIONS, owner)
	dynamic_type = _expect_str(raw, "dynamic_type", DECLARATIONS, owner)
	if "default" in raw:
		return ArgumentRecord(name=name, dynamic_type=dynamic_type, has_default=True, default=raw["default"])
	return ArgumentRecord(name=name, dynamic_type=dynamic_type)


def _parse_return(raw: Any, owner: str) -> ReturnRecord:
	if not isinstance(raw, dict):
		raise TableError(f"{owner}: returns must be objects", table=DECLARATIONS)
	dynamic_type = _expect_str(raw, "dynamic_type", DECLARATIONS, owner)
	name = raw.get("name", "")
	if not isinstance(name, str):
		raise TableError(f"{owner}: return name must be a string", table=DECLARATIONS)
	return ReturnRecord(name=name, dynamic_type=dynamic_type)


def parse_declarations(data: Any) -> list[DeclarationRecord]:
	"""
	Build DeclarationRecords from decoded JSON.

	Records without a `name` are ignored (the ATen table carries a few of
	those). `method_of` and `arguments` are required on every named record.
	"""
	records: list[DeclarationRecord] = []
	for raw in _expect_list(data, DECLARATIONS):
		if not isinstance(raw, dict):
			raise TableError("declaration records must be objects", table=DECLARATIONS)
		if "name" not in raw:
			continue
		name = _expect_str(raw, "name", DECLARATIONS, "<record>")
		method_of = raw.get("method_of")
		if not isinstance(method_of, list) or not all(isinstance(m, str) for m in method_of):
			raise TableError(f"{name}: 'method_of' must be a list of strings", table=DECLARATIONS)
		arguments = raw.get("arguments")
		if not isinstance(arguments, list):
			raise TableError(f"{name}: 'arguments' must be a list", table=DECLARATIONS)
		returns = raw.get("returns", [])
		if not isinstance(returns, list):
			raise TableError(f"{name}: 'returns' must be a list", table=DECLARATIONS)
		mode = raw.get("mode")
		records.append(
			DeclarationRecord(
				name=name,
				method_of=tuple(method_of),
				arguments=tuple(_parse_argument(a, name) for a in arguments),
				returns=tuple(_parse_return(r, name) for r in returns),
				mode=mode if isinstance(mode, str) else None,
				deprecated=bool(raw.get("deprecated", False)),
				inplace=bool(raw.get("inplace", False)),
				out=bool(raw.get("out", False)),
			)
		)
	return records


def parse_formulas(data: Any) -> list[FormulaRecord]:
	"""Build FormulaRecords from decoded JSON; entries without `name` are ignored."""
	records: list[FormulaRecord] = []
	for raw in _expect_list(data, DERIVATIVES):
		if not isinstance(raw, dict):
			raise TableError("formula records must be objects", table=DERIVATIVES)
		if "name" not in raw:
			continue
		header = _expect_str(raw, "name", DERIVATIVES, "<record>")
		bodies: list[Tuple[str, str]] = []
		for key, value in raw.items():
			if key == "name":
				continue
			if not isinstance(value, str):
				raise TableError(f"{header}: body '{key}' must be a string", table=DERIVATIVES)
			bodies.append((key, value))
		records.append(FormulaRecord(header=header, bodies=tuple(bodies)))
	return records


def load_declarations(path: Path) -> list[DeclarationRecord]:
	return parse_declarations(_read_json(path, DECLARATIONS))


def load_formulas(path: Path) -> list[FormulaRecord]:
	return parse_formulas(_read_json(path, DERIVATIVES))


def split_output_names(key: str) -> list[str]:
	"""Split a (possibly comma-joined) body key into its output names."""
	return [part.strip() for part in key.split(",") if part.strip()]


__all__ = [
	"ArgumentRecord",
	"ReturnRecord",
	"DeclarationRecord",
	"FormulaRecord",
	"parse_declarations",
	"parse_formulas",
	"load_declarations",
	"load_formulas",
	"split_output_names",
	"DECLARATIONS",
	"DERIVATIVES",
]
