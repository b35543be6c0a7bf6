# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Error types raised by the generator stages.

Two severities exist:

- `TableError` is pipeline-fatal: an input table is unreadable or structurally
  malformed. The driver writes nothing and exits non-zero.
- `EntryError` subclasses are entry-local: the offending declaration or
  formula is skipped and reported as a Diagnostic, and processing continues.
  Each subclass carries the reason category as its `code`.
"""

from __future__ import annotations


class TableError(ValueError):
	"""An input table is unreadable or does not have the expected structure."""

	def __init__(self, message: str, *, table: str | None = None) -> None:
		super().__init__(message)
		self.table = table


class EntryError(ValueError):
	"""Base class for failures scoped to a single table entry."""

	code = "EntryError"


class UnsupportedType(EntryError):
	code = "UnsupportedType"

	def __init__(self, message: str, *, tag: str | None = None) -> None:
		super().__init__(message)
		self.tag = tag


class MissingSelf(EntryError):
	code = "MissingSelf"


class NoReturns(EntryError):
	code = "NoReturns"


class AmbiguousOrMissingOverload(EntryError):
	code = "AmbiguousOrMissingOverload"


class UnknownDeclaration(EntryError):
	code = "UnknownDeclaration"


class MissingDependency(EntryError):
	code = "MissingDependency"

	def __init__(self, message: str, *, symbol: str | None = None) -> None:
		super().__init__(message)
		self.symbol = symbol


class UnsupportedMultiGradShape(EntryError):
	code = "UnsupportedMultiGradShape"


class DuplicateOutput(EntryError):
	"""Two bodies of one formula entry differentiate the same argument."""

	code = "DuplicateOutput"


class UnsupportedSyntax(EntryError):
	"""A formula body uses syntax outside the supported expression grammar."""

	code = "UnsupportedSyntax"


__all__ = [
	"TableError",
	"EntryError",
	"UnsupportedType",
	"MissingSelf",
	"NoReturns",
	"AmbiguousOrMissingOverload",
	"UnknownDeclaration",
	"MissingDependency",
	"UnsupportedMultiGradShape",
	"DuplicateOutput",
	"UnsupportedSyntax",
]
