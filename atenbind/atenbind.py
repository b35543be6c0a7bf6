# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
atenbind driver.

Pipeline:

declaration table -> ingestion (signatures) -> frozen ProcRegistry
                                            -> forward bindings
formula table -> header parse -> candidate resolution -> rewrite -> backward procs

Both tables are loaded before anything is generated: a malformed table is the
only fatal condition and must leave no output behind. Everything else is an
entry-local diagnostic.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from atenbind.core.diagnostics import Diagnostic
from atenbind.core.errors import TableError
from atenbind.derivatives import BackwardProc, process_formulas
from atenbind.emitter import emit_bindings, emit_derivatives
from atenbind.proc_registry import ProcRegistry, build_registry, default_helpers, load_helpers
from atenbind.signatures import ProcSignature, ingest_declarations
from atenbind.tables import DeclarationRecord, FormulaRecord, load_declarations, load_formulas


@dataclass(frozen=True)
class GeneratorConfig:
	out_dir: Path = Path("torch")
	bindings_name: str = "declarations.nim"
	derivatives_name: str = "derivatives.nim"
	skip_inplace: bool = False
	autograd_blocks: bool = False
	# Helper procs seeded into the registry before ingestion.
	extra_helpers: tuple[ProcSignature, ...] = ()

	@property
	def bindings_path(self) -> Path:
		return self.out_dir / self.bindings_name

	@property
	def derivatives_path(self) -> Path:
		return self.out_dir / self.derivatives_name


@dataclass
class GenerationResult:
	registry: ProcRegistry
	backward: List[BackwardProc]
	bindings: str
	derivatives: str
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def errors(self) -> List[Diagnostic]:
		return [d for d in self.diagnostics if d.severity == "error"]


def generate(
	declarations: Sequence[DeclarationRecord],
	formulas: Sequence[FormulaRecord],
	config: GeneratorConfig | None = None,
) -> GenerationResult:
	"""Run the whole pipeline in memory; nothing is written."""
	config = config or GeneratorConfig()
	generated, diagnostics = ingest_declarations(declarations, skip_inplace=config.skip_inplace)
	helpers = default_helpers() + list(config.extra_helpers)
	registry = build_registry(generated, helpers=helpers)
	backward, formula_diags = process_formulas(list(formulas), registry)
	diagnostics.extend(formula_diags)
	return GenerationResult(
		registry=registry,
		backward=backward,
		bindings=emit_bindings(registry),
		derivatives=emit_derivatives(backward, autograd_blocks=config.autograd_blocks),
		diagnostics=diagnostics,
	)


def write_outputs(result: GenerationResult, config: GeneratorConfig) -> None:
	config.out_dir.mkdir(parents=True, exist_ok=True)
	config.bindings_path.write_text(result.bindings)
	config.derivatives_path.write_text(result.derivatives)


def _table_error_json(err: TableError) -> dict:
	return {
		"phase": err.table,
		"entry": None,
		"code": "TableError",
		"severity": "error",
		"message": str(err),
		"notes": [],
	}


def main(argv: list[str] | None = None) -> int:
	"""
	Generate Nim bindings and derivatives from the two JSON tables.

	Exit code is 1 only when a table (or the helpers file) cannot be loaded;
	skipped entries are reported but do not fail the run. With --json,
	prints `{"exit_code", "diagnostics"}` on stdout instead of stderr lines.
	"""
	parser = argparse.ArgumentParser(description="Generate Nim bindings and derivatives from ATen tables")
	parser.add_argument("declarations", type=Path, help="Declaration table (JSON)")
	parser.add_argument("derivatives", type=Path, help="Formula table (JSON)")
	parser.add_argument("-o", "--out-dir", type=Path, default=Path("torch"), help="Output directory (default: torch)")
	parser.add_argument("--bindings-name", default="declarations.nim", help="File name of the forward bindings")
	parser.add_argument("--derivatives-name", default="derivatives.nim", help="File name of the backward procedures")
	parser.add_argument(
		"--helpers",
		type=Path,
		help="JSON list of extra hand-written helper procs ({name, display?, kind})",
	)
	parser.add_argument("--skip-inplace", action="store_true", help="Do not bind inplace variants")
	parser.add_argument(
		"--autograd-blocks",
		action="store_true",
		help="Follow each backward procedure with an autograd block",
	)
	parser.add_argument("--json", action="store_true", help="Emit diagnostics as JSON")
	parser.add_argument("--quiet", action="store_true", help="Do not print note diagnostics")
	args = parser.parse_args(argv)

	try:
		declarations = load_declarations(args.declarations)
		formulas = load_formulas(args.derivatives)
		extra_helpers = tuple(load_helpers(args.helpers)) if args.helpers else ()
	except TableError as err:
		if args.json:
			print(json.dumps({"exit_code": 1, "diagnostics": [_table_error_json(err)]}))
		else:
			print(f"{err.table or '?'}: error: {err}", file=sys.stderr)
		return 1

	config = GeneratorConfig(
		out_dir=args.out_dir,
		bindings_name=args.bindings_name,
		derivatives_name=args.derivatives_name,
		skip_inplace=args.skip_inplace,
		autograd_blocks=args.autograd_blocks,
		extra_helpers=extra_helpers,
	)
	result = generate(declarations, formulas, config)
	write_outputs(result, config)

	shown = [d for d in result.diagnostics if not (args.quiet and d.severity == "note")]
	if args.json:
		print(json.dumps({"exit_code": 0, "diagnostics": [d.to_json() for d in shown]}))
	else:
		for diag in shown:
			print(diag.render(), file=sys.stderr)
	return 0


__all__ = ["GeneratorConfig", "GenerationResult", "generate", "write_outputs", "main"]
