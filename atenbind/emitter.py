# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Nim source emission.

Both emitters are pure functions of their inputs: declarations come out in
registration order and backward procedures in formula-table order, so two
runs over the same tables produce byte-identical files.
"""

from __future__ import annotations

from typing import Iterable, List

from atenbind.derivatives import BackwardProc
from atenbind.proc_registry import ProcRegistry
from atenbind.signatures import InvocationKind, ProcSignature

BANNER = "# Automatically generated by atenbind, do not edit."
GUARD_MESSAGE = "CuDNN cannot be used to compute backward in evaluation mode"

DERIVATIVES_PRELUDE = (
	"import math",
	"import ../torch",
	"import autograd_helpers",
	"",
	"const M_PI = math.PI",
)


def forward_binding(proc: ProcSignature) -> str:
	"""One-line forward binding; the call expression already selects the receiver."""
	return f"proc {proc.name}*({proc.params_text}): {proc.return_type} {{.inline, noinit.}} = {proc.call_expr}"


def emit_bindings(registry: ProcRegistry) -> str:
	lines = [BANNER, ""]
	for proc in registry.generated():
		lines.append(forward_binding(proc))
	lines.append("")
	return "\n".join(lines)


def _forward_call(proc: ProcSignature) -> str:
	args = [a.name for a in proc.args]
	if proc.kind is InvocationKind.INSTANCE_METHOD:
		return f"{args[0]}.{proc.name}({', '.join(args[1:])})"
	if proc.kind is InvocationKind.STATIC_ON_TYPE:
		args.insert(0, "ty")
	return f"{proc.name}({', '.join(args)})"


def backward_proc(proc: BackwardProc) -> List[str]:
	lines = [f"proc {proc.name}*({proc.params_text}): {proc.return_type} {{.inline, noinit.}} ="]
	if proc.training_guard:
		lines.append("  if not training:")
		lines.append(f'    raiseAssert("{GUARD_MESSAGE}")')
	for binding in proc.bindings:
		lines.append(f"  let {binding.name} = {binding.expr}")
	for assignment in proc.assignments:
		lines.append(f"  result.{assignment.field} = {assignment.value}")
	return lines


def autograd_block(proc: BackwardProc) -> List[str]:
	forward = proc.forward
	lines = [f"autograd {forward.name}({forward.params_text}) -> {forward.return_type}:"]
	lines.append(f"  result: {_forward_call(forward)}")
	for field, expr in proc.autograd_lines:
		lines.append(f"  {field}: {expr}")
	return lines


def emit_derivatives(procs: Iterable[BackwardProc], *, autograd_blocks: bool = False) -> str:
	lines = [BANNER, "", *DERIVATIVES_PRELUDE, ""]
	for proc in procs:
		lines.append("")
		lines.extend(backward_proc(proc))
		if autograd_blocks:
			lines.append("")
			lines.extend(autograd_block(proc))
	lines.append("")
	return "\n".join(lines)


__all__ = [
	"BANNER",
	"forward_binding",
	"backward_proc",
	"autograd_block",
	"emit_bindings",
	"emit_derivatives",
]
