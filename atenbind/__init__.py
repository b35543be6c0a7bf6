# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
atenbind: Nim binding/derivative generator for the ATen tensor library.

Pipeline:
  tables:          load the declaration and formula tables (JSON)
  signatures:      resolve types and synthesize ProcSignatures per invocation kind
  proc_registry:   freeze the synthesized signatures (read-only afterwards)
  formula:         parse formula headers/bodies and rewrite them structurally
  emitter:         serialize forward bindings and backward procedures

The CLI entrypoint is `atenbind.atenbind:main` (`python -m atenbind`).
"""

__all__ = ["core", "formula"]
