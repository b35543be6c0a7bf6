# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ProcRegistry: the table of synthesized signatures, keyed by original name.

The registry is filled in a single write phase (helper seeding, then
ingestion) and frozen before any formula is resolved. After `freeze()` it is
a read-only snapshot: resolution and rewriting only query it, so formula
entries cannot influence each other through it.

Registration order is significant: overload disambiguation is first-match in
this order, and emission follows it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from atenbind.core.errors import TableError
from atenbind.signatures import InvocationKind, ProcSignature

# Hand-written procs of the Nim side that formulas call. Their arguments do
# not matter: they only need to be known for call-site translation and
# needed-symbol validation.
DEFAULT_HELPERS: Tuple[Tuple[str, str, InvocationKind], ...] = (
	("maybe_multiply", "maybe_multiply", InvocationKind.FREE_FUNCTION),
	("mm_mat1_backward", "mm_mat1_backward", InvocationKind.FREE_FUNCTION),
	("mm_mat2_backward", "mm_mat2_backward", InvocationKind.FREE_FUNCTION),
	("pow_backward", "pow_backward", InvocationKind.FREE_FUNCTION),
	("pow_backward_self", "pow_backward_self", InvocationKind.FREE_FUNCTION),
	("pow_backward_exponent", "pow_backward_exponent", InvocationKind.FREE_FUNCTION),
	("atan2_backward", "atan2_backward", InvocationKind.FREE_FUNCTION),
	("split_backward", "split_backward", InvocationKind.FREE_FUNCTION),
	("split_with_sizes_backward", "split_with_sizes_backward", InvocationKind.FREE_FUNCTION),
	("sizes", "sizes", InvocationKind.INSTANCE_METHOD),
	("strides", "strides", InvocationKind.INSTANCE_METHOD),
	("type", "getType", InvocationKind.INSTANCE_METHOD),
)

_HELPER_KINDS = {
	"instance": InvocationKind.INSTANCE_METHOD,
	"namespace": InvocationKind.FREE_FUNCTION,
}


def helper_signature(original_name: str, name: str, kind: InvocationKind) -> ProcSignature:
	return ProcSignature(original_name=original_name, name=name, kind=kind, is_helper=True)


def default_helpers() -> List[ProcSignature]:
	return [helper_signature(orig, name, kind) for orig, name, kind in DEFAULT_HELPERS]


def load_helpers(path: Path) -> List[ProcSignature]:
	"""
	Load extra helper procs from a JSON list of
	`{"name": ..., "display": ..., "kind": "instance" | "namespace"}` objects.
	"""
	try:
		data = json.loads(path.read_text())
	except (OSError, json.JSONDecodeError) as exc:
		raise TableError(f"cannot load helpers from {path}: {exc}", table="helpers") from exc
	if not isinstance(data, list):
		raise TableError("helpers file must hold a list of objects", table="helpers")
	helpers: List[ProcSignature] = []
	for raw in data:
		if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
			raise TableError("every helper needs a string 'name'", table="helpers")
		kind = _HELPER_KINDS.get(raw.get("kind", "namespace"))
		if kind is None:
			raise TableError(f"helper '{raw['name']}': kind must be 'instance' or 'namespace'", table="helpers")
		display = raw.get("display", raw["name"])
		if not isinstance(display, str):
			raise TableError(f"helper '{raw['name']}': display must be a string", table="helpers")
		helpers.append(helper_signature(raw["name"], display, kind))
	return helpers


@dataclass(frozen=True)
class CallSiteNames:
	"""Renames applied to formula call sites (original name -> display name)."""

	methods: Dict[str, str]
	functions: Dict[str, str]


class ProcRegistry:
	"""
	Ordered store of ProcSignatures with lookups by original name.

	`register` is only valid before `freeze()`; every query works on both
	states but later stages only ever see a frozen registry.
	"""

	def __init__(self, procs: Iterable[ProcSignature] = ()) -> None:
		self._procs: List[ProcSignature] = []
		self._by_name: Dict[str, List[ProcSignature]] = {}
		self._by_alternate: Dict[str, List[ProcSignature]] = {}
		self._frozen = False
		self._call_sites: Optional[CallSiteNames] = None
		for proc in procs:
			self.register(proc)

	@property
	def frozen(self) -> bool:
		return self._frozen

	def register(self, proc: ProcSignature) -> None:
		if self._frozen:
			raise RuntimeError(f"cannot register '{proc.original_name}': registry is frozen")
		self._procs.append(proc)
		self._by_name.setdefault(proc.original_name, []).append(proc)
		if proc.alternate_name:
			self._by_alternate.setdefault(proc.alternate_name, []).append(proc)

	def freeze(self) -> "ProcRegistry":
		self._frozen = True
		return self

	def __iter__(self) -> Iterator[ProcSignature]:
		return iter(self._procs)

	def __len__(self) -> int:
		return len(self._procs)

	def generated(self) -> List[ProcSignature]:
		"""Signatures that get a forward binding, in registration order."""
		return [p for p in self._procs if not p.is_helper]

	def by_original_name(self, name: str) -> Tuple[ProcSignature, ...]:
		"""
		Declaration entries sharing `name`, in registration order, falling back
		to the NN pairing alias. Helpers are not declarations and never match.
		"""
		direct = [p for p in self._by_name.get(name, ()) if not p.is_helper]
		if direct:
			return tuple(direct)
		return tuple(p for p in self._by_alternate.get(name, ()) if not p.is_helper)

	def has_callable(self, name: str) -> bool:
		"""
		True when a formula may call `name`: an instance or namespace proc
		registered under it (or under its pairing alias). StaticOnType-only
		procs are not callable from formulas.
		"""
		for proc in self._by_name.get(name, []) + self._by_alternate.get(name, []):
			if proc.kind is not InvocationKind.STATIC_ON_TYPE:
				return True
		return False

	def call_sites(self) -> CallSiteNames:
		"""Call-site renames; the first registration of a name wins."""
		if self._call_sites is not None and self._frozen:
			return self._call_sites
		methods: Dict[str, str] = {}
		functions: Dict[str, str] = {}
		for proc in self._procs:
			if proc.kind is InvocationKind.INSTANCE_METHOD:
				methods.setdefault(proc.original_name, proc.name)
			elif proc.kind is InvocationKind.FREE_FUNCTION:
				functions.setdefault(proc.original_name, proc.name)
		names = CallSiteNames(methods=methods, functions=functions)
		if self._frozen:
			self._call_sites = names
		return names


def build_registry(
	generated: Iterable[ProcSignature],
	*,
	helpers: Iterable[ProcSignature] = (),
) -> ProcRegistry:
	"""Seed helpers, register generated signatures, freeze."""
	registry = ProcRegistry(helpers)
	for proc in generated:
		registry.register(proc)
	return registry.freeze()


__all__ = [
	"ProcRegistry",
	"CallSiteNames",
	"DEFAULT_HELPERS",
	"default_helpers",
	"load_helpers",
	"helper_signature",
	"build_registry",
]
