"""
Tiny Standard Library
Built-in functions callable from Tiny scripts
The table is fixed; scripts cannot define or register functions
"""

from typing import Callable, Dict, List, Optional, TextIO
import sys

from utilities import unknown_function_error


# ============================================================================
# PRINT FUNCTIONS
# ============================================================================

def tiny_print(args: List[int], output: TextIO) -> None:
  """Write each argument followed by a space, then a newline"""
  for arg in args:
    output.write(f"{arg} ")
  output.write("\n")


# ============================================================================
# BUILT-IN TABLE
# ============================================================================

BUILTIN_FUNCTIONS: Dict[str, Callable[[List[int], TextIO], None]] = {
    'print': tiny_print,
}


def lookup_builtin(name: str) -> Callable[[List[int], TextIO], None]:
  """Return the implementation of a built-in, or raise the fatal unknown-function error"""
  func = BUILTIN_FUNCTIONS.get(name)
  if func is None:
    raise unknown_function_error(name, list(BUILTIN_FUNCTIONS))
  return func


def call_builtin(name: str, args: List[int], output: Optional[TextIO] = None) -> None:
  """Look up and invoke a built-in; output defaults to stdout"""
  func = lookup_builtin(name)
  func(list(args), output if output is not None else sys.stdout)
