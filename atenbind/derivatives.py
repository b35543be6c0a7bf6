# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Backward procedures: one per formula entry.

An entry is processed body by body against a frozen registry:

  1. parse the body expression;
  2. reject the multi-gradient collection (`grads`, `grads[i]`);
  3. check that every output name is an argument of the forward declaration
     and is not differentiated by an earlier body;
  4. check that every call site refers to a registered instance/namespace proc;
  5. split off a leading `training ?` guard;
  6. rewrite call sites and placeholders, then print;
  7. bind the printed expression once per entry and assign each output from it.

Any EntryError abandons the entry; nothing about it is emitted. State that
spans bodies (bound expressions, guard, mask) lives in a RewriteContext
owned by the entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from atenbind.candidate_resolver import resolve_candidate
from atenbind.core.diagnostics import Diagnostic
from atenbind.core.errors import DuplicateOutput, EntryError, MissingDependency, UnsupportedMultiGradShape
from atenbind.formula.ast import call_names
from atenbind.formula.header import parse_header
from atenbind.formula.parser import parse_expr
from atenbind.formula.printer import to_nim
from atenbind.formula.rewriter import (
	MASK_TOKEN,
	MULTI_GRAD_TOKEN,
	FormulaRewriter,
	backward_arg_name,
	references,
	strip_training_guard,
)
from atenbind.proc_registry import ProcRegistry
from atenbind.signatures import ArgumentSpec, ProcSignature
from atenbind.tables import DERIVATIVES, FormulaRecord, split_output_names

NOT_IMPLEMENTED = "not_implemented"
BINDING_SUFFIX = "_result"


@dataclass(frozen=True)
class Binding:
	name: str
	expr: str


@dataclass(frozen=True)
class OutputAssignment:
	"""`result.<field> = <source>[<index>]`; index is set for multi-output bodies."""

	field: str
	source: str
	index: Optional[int] = None

	@property
	def value(self) -> str:
		if self.index is None:
			return self.source
		return f"{self.source}[{self.index}]"


@dataclass
class RewriteContext:
	"""Per-entry state; discarded once the entry has been processed."""

	bound: Dict[str, str] = field(default_factory=dict)
	bindings: List[Binding] = field(default_factory=list)
	training_guard: bool = False
	mask_size: Optional[int] = None

	@property
	def has_mask(self) -> bool:
		return self.mask_size is not None

	def bind(self, expr: str, name: str) -> str:
		"""Return the name bound to `expr`, binding it under `name` the first time."""
		existing = self.bound.get(expr)
		if existing is not None:
			return existing
		self.bound[expr] = name
		self.bindings.append(Binding(name=name, expr=expr))
		return name


@dataclass(frozen=True)
class BackwardProc:
	"""A fully rewritten backward procedure, ready for emission."""

	forward: ProcSignature
	fields: Tuple[ArgumentSpec, ...]
	bindings: Tuple[Binding, ...]
	assignments: Tuple[OutputAssignment, ...]
	training_guard: bool = False
	mask_size: Optional[int] = None
	# (field, expression) pairs of the optional autograd block.
	autograd_lines: Tuple[Tuple[str, str], ...] = ()

	@property
	def name(self) -> str:
		return f"{self.forward.name}_bwd"

	@property
	def return_type(self) -> str:
		fields = ", ".join(f"{f.name}: {f.type.spelling}" for f in self.fields)
		return f"tuple[{fields}]"

	@property
	def params_text(self) -> str:
		params = ["grad: Tensor", f"fwd_result: {self.forward.return_type}"]
		params.extend(f"{backward_arg_name(a.name)}: {a.type.spelling}" for a in self.forward.args)
		if self.mask_size is not None:
			params.append(f"{MASK_TOKEN}: StdArray[bool, {self.mask_size}]")
		return "; ".join(params)


def _check_outputs(forward: ProcSignature, names: List[str], seen: Set[str]) -> List[ArgumentSpec]:
	args: List[ArgumentSpec] = []
	for out_name in names:
		if out_name in seen:
			raise DuplicateOutput(f"output '{out_name}' is differentiated by more than one body")
		seen.add(out_name)
		arg = forward.arg_by_original_name(out_name)
		if arg is None:
			raise MissingDependency(
				f"output '{out_name}' is not an argument of '{forward.original_name}'",
				symbol=out_name,
			)
		args.append(arg)
	return args


def _check_needed(registry: ProcRegistry, names: List[str]) -> None:
	for name in names:
		if not registry.has_callable(name):
			raise MissingDependency(f"formula calls '{name}' which has no binding", symbol=name)


def process_formula(record: FormulaRecord, registry: ProcRegistry) -> Optional[BackwardProc]:
	"""
	Build the backward procedure of one formula entry.

	Returns None when every body is `not_implemented`. Raises EntryError when
	the entry must be skipped.
	"""
	header = parse_header(record.header)
	forward = resolve_candidate(registry, header)
	rewriter = FormulaRewriter(forward, registry.call_sites())
	ctx = RewriteContext()
	fields: List[ArgumentSpec] = []
	assignments: List[OutputAssignment] = []
	autograd_lines: List[Tuple[str, str]] = []
	seen: Set[str] = set()

	for key, text in record.bodies:
		body = text.strip()
		if body.startswith(NOT_IMPLEMENTED):
			continue
		out_names = split_output_names(key)
		expr = parse_expr(body)
		if references(expr, MULTI_GRAD_TOKEN):
			raise UnsupportedMultiGradShape(
				f"body of '{key}' consumes several upstream gradients ('{MULTI_GRAD_TOKEN}')"
			)
		targets = _check_outputs(forward, out_names, seen)
		_check_needed(registry, call_names(expr))

		expr, guarded = strip_training_guard(expr)
		if guarded:
			ctx.training_guard = True
		if not ctx.has_mask and references(expr, MASK_TOKEN):
			ctx.mask_size = len(out_names)

		printed = to_nim(rewriter.rewrite(expr))
		multi = len(targets) > 1
		for index, arg in enumerate(targets):
			source = ctx.bind(printed, f"{arg.name}{BINDING_SUFFIX}")
			assignment = OutputAssignment(field=arg.name, source=source, index=index if multi else None)
			fields.append(arg)
			assignments.append(assignment)
			autograd_lines.append((arg.name, f"{printed}[{index}]" if multi else printed))

	if not fields:
		return None
	return BackwardProc(
		forward=forward,
		fields=tuple(fields),
		bindings=tuple(ctx.bindings),
		assignments=tuple(assignments),
		training_guard=ctx.training_guard,
		mask_size=ctx.mask_size,
		autograd_lines=tuple(autograd_lines),
	)


def process_formulas(
	records: List[FormulaRecord],
	registry: ProcRegistry,
) -> tuple[List[BackwardProc], List[Diagnostic]]:
	"""Process every entry in table order; failures become diagnostics."""
	procs: List[BackwardProc] = []
	diagnostics: List[Diagnostic] = []
	for record in records:
		try:
			proc = process_formula(record, registry)
		except EntryError as err:
			diagnostics.append(Diagnostic.from_error(err, phase=DERIVATIVES, entry=record.header))
			continue
		if proc is None:
			diagnostics.append(
				Diagnostic(
					message="every formula body is not_implemented",
					code="NotImplemented",
					phase=DERIVATIVES,
					severity="note",
					entry=record.header,
				)
			)
			continue
		procs.append(proc)
	return procs, diagnostics


__all__ = [
	"Binding",
	"OutputAssignment",
	"RewriteContext",
	"BackwardProc",
	"process_formula",
	"process_formulas",
]
