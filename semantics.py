"""
Tiny Semantic Analysis - read-only checks over a parsed program
Reports statements that will silently do nothing and calls that will abort
the run; evaluation never depends on this pass
"""

from typing import Dict, List, Optional, Set

from parsing import (
  FunctionCall,
  IfCondition,
  SourceSpan,
  VarAssign,
  VarUpdate,
  WhileLoop,
  find_statements_by_type,
  walk_statements,
)
from stdlib import BUILTIN_FUNCTIONS


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_diagnostic(severity: str, message: str, span: Optional[SourceSpan] = None) -> Dict:
  """Create an immutable diagnostic dictionary"""
  return {
      'severity': severity,
      'message': message,
      'span': span
  }


def format_diagnostic(diagnostic: Dict) -> str:
  """Render a diagnostic as file:line: severity: message"""
  span = diagnostic['span']
  location = f"{span.filename}:{span.start_line}" if span else "<unknown>"
  return f"{location}: {diagnostic['severity']}: {diagnostic['message']}"


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def declared_variables(statements) -> Set[str]:
  """Names given a value by some `let` anywhere in the program"""
  return {s.var for s in find_statements_by_type(statements, VarAssign)}


def written_variables(statements) -> Set[str]:
  """Names assigned or updated anywhere in a block"""
  return {
    s.var for s in walk_statements(statements)
    if isinstance(s, (VarAssign, VarUpdate))
  }


def analyze_program(statements) -> List[Dict]:
  """Return diagnostics for a parsed program, in source order"""
  declared = declared_variables(statements)
  diagnostics = []

  for statement in walk_statements(statements):
    if isinstance(statement, (VarUpdate, IfCondition, WhileLoop)) and statement.var not in declared:
      diagnostics.append(make_diagnostic(
        'warning',
        f"'{statement.var}' is never declared with let; this statement has no effect",
        statement.span
      ))

    if isinstance(statement, WhileLoop) and statement.var in declared:
      if statement.var not in written_variables(statement.body):
        diagnostics.append(make_diagnostic(
          'warning',
          f"loop body never changes '{statement.var}'; the loop runs zero times or forever",
          statement.span
        ))

    if isinstance(statement, FunctionCall) and statement.name not in BUILTIN_FUNCTIONS:
      diagnostics.append(make_diagnostic(
        'error',
        f"unknown function '{statement.name}' will abort the program",
        statement.span
      ))

    if isinstance(statement, FunctionCall):
      for arg in statement.args:
        if isinstance(arg, str) and arg not in declared:
          diagnostics.append(make_diagnostic(
            'error',
            f"argument '{arg}' is never declared with let; the call will abort the program",
            statement.span
          ))

  return diagnostics


def has_errors(diagnostics: List[Dict]) -> bool:
  return any(d['severity'] == 'error' for d in diagnostics)
