# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Identifier escaping for generated Nim code.

ATen names freely use leading/trailing underscores, doubled underscores and
words that are keywords in Nim. `escape_name` rewrites them into valid,
collision-free identifiers. The rule is a pure function so repeated runs
always produce the same spelling:

  - trailing `_`        -> append `u`      (`add_` -> `add_u`)
  - leading `_`         -> prepend `u`     (`_cat` -> `u_cat`)
  - reserved word       -> prepend `a`     (`var` -> `avar`)
  - every `__`          -> `_u_u`          (`__and__` -> `u_u_uand_u_uu`)
"""

from __future__ import annotations

ESCAPE_MARKER = "u"
RESERVED_PREFIX = "a"

NIM_KEYWORDS = frozenset(
	{
		"addr", "and", "as", "asm", "bind", "block", "break", "case", "cast",
		"concept", "const", "continue", "converter", "defer", "discard",
		"distinct", "div", "do", "elif", "else", "end", "enum", "except",
		"export", "finally", "for", "from", "func", "if", "import", "in",
		"include", "interface", "is", "isnot", "iterator", "let", "macro",
		"method", "mixin", "mod", "nil", "not", "notin", "object", "of", "or",
		"out", "proc", "ptr", "raise", "ref", "return", "shl", "shr", "static",
		"template", "try", "tuple", "type", "using", "var", "when", "while",
		"xor", "yield",
	}
)

# `result` is Nim's implicit return variable and `to` is the converter used
# by every generated call expression.
RESERVED_NAMES = NIM_KEYWORDS | {"result", "to"}


def escape_name(name: str) -> str:
	"""Return the generated-code spelling of an ATen identifier."""
	escaped = name
	if escaped.endswith("_"):
		escaped += ESCAPE_MARKER
	if escaped.startswith("_"):
		escaped = ESCAPE_MARKER + escaped
	if escaped in RESERVED_NAMES:
		escaped = RESERVED_PREFIX + escaped
	return escaped.replace("__", "_u_u")


__all__ = ["escape_name", "RESERVED_NAMES"]
