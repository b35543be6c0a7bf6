# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pick the forward declaration a formula header refers to.

Rules:
- A single registry entry with the header's name is selected unconditionally.
- Among several, the first entry in registration order whose arity and
  positional argument types equal the header's wins. This is first-match,
  not best-match: later overloads never displace an earlier exact match.
"""

from __future__ import annotations

from typing import Tuple

from atenbind.core.errors import AmbiguousOrMissingOverload, UnknownDeclaration
from atenbind.core.types_core import TypeToken, resolve_argument_type
from atenbind.formula.header import FormulaHeader
from atenbind.proc_registry import ProcRegistry
from atenbind.signatures import ProcSignature


def _signature_matches(proc: ProcSignature, wanted: Tuple[TypeToken, ...]) -> bool:
	if len(proc.args) != len(wanted):
		return False
	return all(arg.type is token for arg, token in zip(proc.args, wanted))


def resolve_candidate(registry: ProcRegistry, header: FormulaHeader) -> ProcSignature:
	candidates = registry.by_original_name(header.name)
	if not candidates:
		raise UnknownDeclaration(f"no declaration named '{header.name}'")
	if len(candidates) == 1:
		return candidates[0]
	# Only needed (and only validated) when there is something to choose from.
	wanted = tuple(resolve_argument_type(tag) for tag in header.arg_types)
	for candidate in candidates:
		if _signature_matches(candidate, wanted):
			return candidate
	spelled = ", ".join(header.arg_types)
	raise AmbiguousOrMissingOverload(
		f"none of {len(candidates)} overloads of '{header.name}' takes ({spelled})"
	)


__all__ = ["resolve_candidate"]
