"""
Common diagnostic structure for the generator stages.

Entries are identified by the table they come from and their name; there are
no source spans because both tables are flat records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .errors import EntryError


@dataclass
class Diagnostic:
	"""Represents a skipped entry (error) or an informational note."""

	message: str
	code: str | None = None
	# Stage label: "declarations" for ingestion, "derivatives" for formulas.
	phase: str | None = None
	severity: str = "error"
	entry: str | None = None
	notes: list[str] = field(default_factory=list)

	@classmethod
	def from_error(cls, err: EntryError, *, phase: str, entry: str) -> "Diagnostic":
		return cls(message=str(err), code=err.code, phase=phase, entry=entry)

	def render(self) -> str:
		"""One-line human readable form: `phase:entry: severity: [Code] message`."""
		where = f"{self.phase or '?'}:{self.entry or '?'}"
		code = f"[{self.code}] " if self.code else ""
		line = f"{where}: {self.severity}: {code}{self.message}"
		for note in self.notes:
			line += f" (note: {note})"
		return line

	def to_json(self) -> Dict[str, Any]:
		return {
			"phase": self.phase,
			"entry": self.entry,
			"code": self.code,
			"severity": self.severity,
			"message": self.message,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
