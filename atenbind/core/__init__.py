"""
atenbind.core: shared types, names and diagnostics used across stages.

Modules:
  - types_core: TypeToken vocabulary and the source-tag resolver
  - names: reserved-word escaping for generated identifiers
  - diagnostics: Diagnostic record printed by the driver
  - errors: pipeline-fatal and entry-local error types
"""

__all__ = [
	"types_core",
	"names",
	"diagnostics",
	"errors",
]
