"""
atenbind.formula: formula headers and bodies.

  - header: `name(args)` parsing (lark grammar `header.lark`)
  - ast / parser / printer: body expression tree, parser (`expr.lark`), Nim printer
  - rewriter: structural call-site/placeholder rewriting
"""

__all__ = ["header", "ast", "parser", "printer", "rewriter"]
