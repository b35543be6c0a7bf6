# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Signature synthesis: declaration records -> typed ProcSignatures.

Every declaration may produce up to two ProcSignatures: a StaticOnType
binding when requested, plus either an InstanceMethod (needs a Tensor `self`)
or a FreeFunction. Each signature carries the call expression that invokes
the engine entry point by its original name and converts the result into the
synthesized return shape.

Failures are scoped: an unresolvable argument/return type or an empty return
list skips the whole declaration, a missing `self` only skips the instance
binding.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Iterable, List, Optional, Tuple

from atenbind.core.diagnostics import Diagnostic
from atenbind.core.errors import EntryError, MissingSelf, NoReturns
from atenbind.core.names import escape_name
from atenbind.core.types_core import TypeToken, resolve_argument_type, resolve_type, tuple_spelling
from atenbind.tables import DECLARATIONS, ArgumentRecord, DeclarationRecord

FORWARD_SUFFIX = "_forward"
BACKWARD_SUFFIX = "_backward"


class InvocationKind(Enum):
	INSTANCE_METHOD = auto()
	STATIC_ON_TYPE = auto()
	FREE_FUNCTION = auto()


_METHOD_OF_KINDS = {
	"Tensor": InvocationKind.INSTANCE_METHOD,
	"instance": InvocationKind.INSTANCE_METHOD,
	"Type": InvocationKind.STATIC_ON_TYPE,
	"static-type": InvocationKind.STATIC_ON_TYPE,
	"namespace": InvocationKind.FREE_FUNCTION,
}


def requested_kinds(method_of: Iterable[str]) -> frozenset[InvocationKind]:
	"""Translate `method_of` strings; unknown strings are ignored."""
	return frozenset(_METHOD_OF_KINDS[m] for m in method_of if m in _METHOD_OF_KINDS)


@dataclass(frozen=True)
class ArgumentSpec:
	name: str
	original_name: str
	type: TypeToken
	default: Optional[str] = None

	def param_text(self, *, with_default: bool = True) -> str:
		text = f"{self.name}: {self.type.spelling}"
		if with_default and self.default is not None:
			text += f" = {self.default}"
		return text


@dataclass(frozen=True)
class ReturnField:
	"""One return value. `name` is empty for single (non-tuple) returns."""

	name: str
	original_name: str
	type: TypeToken


@dataclass(frozen=True)
class ProcSignature:
	"""
	A synthesized, fully-typed callable for one operation and one invocation kind.

	`original_name` is the engine entry point; `alternate_name` is the pairing
	alias of NN `_forward` declarations (the name without the suffix).
	Helper signatures (`is_helper`) are hand-written on the Nim side: they are
	known to the registry but never emitted.
	"""

	original_name: str
	name: str
	kind: InvocationKind
	args: Tuple[ArgumentSpec, ...] = ()
	returns: Tuple[ReturnField, ...] = ()
	alternate_name: Optional[str] = None
	call_expr: str = ""
	is_helper: bool = False

	@property
	def is_tuple_return(self) -> bool:
		return len(self.returns) > 1

	@property
	def return_type(self) -> str:
		if not self.returns:
			return ""
		if self.is_tuple_return:
			return tuple_spelling([(r.name, r.type) for r in self.returns])
		return self.returns[0].type.spelling

	@property
	def params_text(self) -> str:
		"""Parameter list of the forward binding (receiver prefix included)."""
		params = ", ".join(a.param_text() for a in self.args)
		if self.kind is InvocationKind.STATIC_ON_TYPE:
			return f"ty: TensorType; {params}" if params else "ty: TensorType"
		return params

	def arg_by_original_name(self, original_name: str) -> Optional[ArgumentSpec]:
		return next((a for a in self.args if a.original_name == original_name), None)

	def matches_name(self, name: str) -> bool:
		return self.original_name == name or self.alternate_name == name


def translate_default(arg: ArgumentRecord, token: TypeToken) -> Optional[str]:
	"""
	Translate a declared default into a Nim literal.

	Integer and boolean literals pass through (wrapped in a sequence literal
	for list-typed arguments), `"nullptr"` becomes `nil`. Every other shape
	yields None: the default is dropped rather than guessed.
	"""
	if not arg.has_default:
		return None
	value = arg.default
	if isinstance(value, bool) or isinstance(value, int):
		text = _scalar_literal(value)
		return f"@[{text}]" if token.is_list else text
	if isinstance(value, list) and token.is_list:
		if all(isinstance(v, (bool, int)) for v in value):
			return "@[" + ", ".join(_scalar_literal(v) for v in value) + "]"
		return None
	if value == "nullptr":
		return "nil"
	return None


def _scalar_literal(value: Any) -> str:
	if isinstance(value, bool):
		return "true" if value else "false"
	return str(value)


def rename_return_field(name: str) -> str:
	"""Align backward-output field names with the argument they differentiate."""
	if name == "grad_input":
		return "self"
	if name.startswith("grad_"):
		return name[len("grad_"):]
	return name


def _resolve_arguments(record: DeclarationRecord) -> List[ArgumentSpec]:
	specs: List[ArgumentSpec] = []
	for arg in record.arguments:
		token = resolve_argument_type(arg.dynamic_type)
		specs.append(
			ArgumentSpec(
				name=escape_name(arg.name),
				original_name=arg.name,
				type=token,
				default=translate_default(arg, token),
			)
		)
	return specs


def _resolve_returns(record: DeclarationRecord) -> Tuple[ReturnField, ...]:
	if not record.returns:
		raise NoReturns(f"declaration '{record.name}' has no returns")
	if len(record.returns) == 1:
		return (ReturnField(name="", original_name=record.returns[0].name, type=resolve_type(record.returns[0].dynamic_type)),)
	fields: list[ReturnField] = []
	for ret in record.returns:
		fields.append(
			ReturnField(
				name=escape_name(rename_return_field(ret.name)),
				original_name=ret.name,
				type=resolve_type(ret.dynamic_type),
			)
		)
	return tuple(fields)


def _conversion(returns: Tuple[ReturnField, ...]) -> str:
	if len(returns) == 1:
		token = returns[0].type
		if token.is_tensor:
			# Take ownership of the engine handle into a managed Tensor.
			return ".to(ATensor).newTensor()"
		return f".to({token.spelling})"
	engine_types = ", ".join("ATensor" if r.type.is_tensor else r.type.spelling for r in returns)
	return f".to(StdTuple{len(returns)}[{engine_types}]).toNimTuple().newTensors()"


def _call_expression(
	kind: InvocationKind,
	engine_name: str,
	declared: List[ArgumentSpec],
	self_arg: Optional[ArgumentSpec],
	returns: Tuple[ReturnField, ...],
) -> str:
	call_args = ""
	for arg in declared:
		if kind is InvocationKind.INSTANCE_METHOD and arg is self_arg:
			continue
		call_args += f", {arg.name}.tensor" if arg.type.is_tensor else f", {arg.name}"
	convert = _conversion(returns)
	if kind is InvocationKind.INSTANCE_METHOD:
		return f'self.tensor.dynamicCppCall("{engine_name}"{call_args}){convert}'
	if kind is InvocationKind.STATIC_ON_TYPE:
		return f'ty.dynamicCppCall("{engine_name}"{call_args}){convert}'
	return f'dynamicCCall("at::{engine_name}"{call_args}){convert}'


def nn_pairing(record: DeclarationRecord) -> Optional[Tuple[str, Optional[str]]]:
	"""
	Return (display source name, alternate name) or None when an NN
	declaration has no paired `_forward`/`_backward` implementation.
	"""
	if not record.is_nn:
		return record.name, None
	if record.name.endswith(FORWARD_SUFFIX):
		stripped = record.name[: -len(FORWARD_SUFFIX)]
		return stripped, stripped
	if record.name.endswith(BACKWARD_SUFFIX):
		return record.name, None
	return None


def synthesize_declaration(record: DeclarationRecord) -> tuple[List[ProcSignature], List[EntryError]]:
	"""
	Build the ProcSignatures of one declaration.

	Raises an EntryError when the whole declaration must be skipped; per-kind
	problems (MissingSelf) are returned alongside the signatures that could be
	built.
	"""
	pairing = nn_pairing(record)
	if pairing is None:
		return [], []
	display_source, alternate = pairing

	declared = _resolve_arguments(record)
	returns = _resolve_returns(record)
	self_arg = next((a for a in declared if a.original_name == "self" and a.type.is_tensor), None)

	kinds = requested_kinds(record.method_of)
	selected: List[InvocationKind] = []
	problems: List[EntryError] = []
	if InvocationKind.STATIC_ON_TYPE in kinds:
		selected.append(InvocationKind.STATIC_ON_TYPE)
	if InvocationKind.INSTANCE_METHOD in kinds and self_arg is None:
		problems.append(MissingSelf(f"method of Tensor without a Tensor 'self' argument: {record.name}"))
	if InvocationKind.INSTANCE_METHOD in kinds and self_arg is not None:
		selected.append(InvocationKind.INSTANCE_METHOD)
	elif InvocationKind.FREE_FUNCTION in kinds:
		selected.append(InvocationKind.FREE_FUNCTION)

	procs: List[ProcSignature] = []
	for kind in selected:
		args = list(declared)
		if kind is InvocationKind.INSTANCE_METHOD:
			args.remove(self_arg)
			args.insert(0, self_arg)
		procs.append(
			ProcSignature(
				original_name=record.name,
				alternate_name=alternate,
				name=escape_name(display_source),
				kind=kind,
				args=tuple(args),
				returns=returns,
				call_expr=_call_expression(kind, record.name, declared, self_arg, returns),
			)
		)
	return procs, problems


def is_filtered(record: DeclarationRecord, *, skip_inplace: bool = False) -> bool:
	"""Deprecated and out variants never get bindings; inplace ones optionally."""
	if record.deprecated or record.is_out_variant:
		return True
	return skip_inplace and record.inplace


def ingest_declarations(
	records: Iterable[DeclarationRecord],
	*,
	skip_inplace: bool = False,
) -> tuple[List[ProcSignature], List[Diagnostic]]:
	"""Synthesize signatures for every record in table order."""
	procs: List[ProcSignature] = []
	diagnostics: List[Diagnostic] = []
	for record in records:
		if is_filtered(record, skip_inplace=skip_inplace):
			continue
		try:
			built, problems = synthesize_declaration(record)
		except EntryError as err:
			diagnostics.append(Diagnostic.from_error(err, phase=DECLARATIONS, entry=record.name))
			continue
		for problem in problems:
			diagnostics.append(Diagnostic.from_error(problem, phase=DECLARATIONS, entry=record.name))
		procs.extend(built)
	return procs, diagnostics


__all__ = [
	"InvocationKind",
	"ArgumentSpec",
	"ReturnField",
	"ProcSignature",
	"requested_kinds",
	"translate_default",
	"rename_return_field",
	"nn_pairing",
	"synthesize_declaration",
	"is_filtered",
	"ingest_declarations",
]
