"""
Utilities module for the Tiny interpreter
Contains common helper functions shared by the parser, interpreter and stdlib
"""

from typing import Callable, Dict, List
import operator

from error_handling import TinyRuntimeError


# Signed 64-bit bounds for every Tiny integer
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


# ==================== COMPARISON OPERATORS ====================

COMPARISON_OPERATORS: Dict[str, Callable[[int, int], bool]] = {
  '==': operator.eq,
  '!=': operator.ne,
  '<': operator.lt,
  '>': operator.gt,
  '<=': operator.le,
  '>=': operator.ge,
}


def compare(op: str, left: int, right: int) -> bool:
  """
  Apply a comparison operator by its source spelling

  Args:
    op: One of == != < > <= >=
    left: Left operand
    right: Right operand

  Returns:
    Result of the comparison; unknown operators compare false

  Examples:
    compare('<', 1, 2) -> True
    compare('>=', 1, 2) -> False
  """
  op_func = COMPARISON_OPERATORS.get(op)
  if op_func is None:
    return False
  return op_func(left, right)


# ==================== INTEGER RANGE UTILITIES ====================

def fits_int64(value: int) -> bool:
  """Check whether value is representable as a signed 64-bit integer"""
  return INT64_MIN <= value <= INT64_MAX


def checked_add(name: str, current: int, delta: int) -> int:
  """
  Add delta to a variable's value, refusing to leave the 64-bit range

  Args:
    name: Variable name for error messages
    current: Current value
    delta: Amount to add

  Returns:
    The new value

  Raises:
    TinyRuntimeError if the result overflows
  """
  result = current + delta
  if not fits_int64(result):
    raise overflow_error(name, current, delta)
  return result


# ==================== ERROR MESSAGE BUILDERS ====================

def overflow_error(name: str, current: int, delta: int) -> TinyRuntimeError:
  """
  Generate integer overflow error

  Args:
    name: Variable being updated
    current: Value before the update
    delta: Amount added

  Returns:
    TinyRuntimeError with formatted message
  """
  return TinyRuntimeError(
    f"Integer overflow updating '{name}': {current} + {delta} does not fit in 64 bits"
  )


def undefined_variable_error(name: str) -> TinyRuntimeError:
  """
  Generate error for a call argument naming an undeclared variable

  Args:
    name: Variable name

  Returns:
    TinyRuntimeError with formatted message
  """
  return TinyRuntimeError(f"Undefined variable in call argument: '{name}'")


def unknown_function_error(name: str, known: List[str]) -> TinyRuntimeError:
  """
  Generate unknown built-in error

  Args:
    name: Name that was called
    known: Names of the available built-ins

  Returns:
    TinyRuntimeError with formatted message
  """
  return TinyRuntimeError(
    f"Unknown function: {name} (available: {', '.join(sorted(known))})"
  )
