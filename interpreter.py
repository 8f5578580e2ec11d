"""
Tiny Interpreter - tree-walking evaluation
Statements are immutable; the only mutable state is the environment dict
owned by one interpreter instance for one program run
"""

from typing import Dict, Iterable, Optional, TextIO
import sys

from error_handling import TinyRuntimeError
from parsing import (
  Argument,
  FunctionCall,
  IfCondition,
  Statement,
  VarAssign,
  VarUpdate,
  WhileLoop,
  create_parser,
  describe_statement,
)
from stdlib import call_builtin
from utilities import checked_add, compare, undefined_variable_error


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_runtime_env(bindings: Optional[Dict[str, int]] = None) -> Dict[str, int]:
  """Create a fresh runtime environment mapping variable names to integers"""
  return dict(bindings or {})


def evaluate_condition(env: Dict[str, int], var: str, op: str, value: int) -> bool:
  """Evaluate `var op value`; an undeclared variable makes the condition false"""
  if var not in env:
    return False
  return compare(op, env[var], value)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_statement(statement: Statement, env: Dict[str, int], output: TextIO,
                   debug: bool = False) -> Dict[str, int]:
  """
  Execute one statement against env (mutated in place) and return env.
  Fatal errors are annotated with the innermost failing statement's location.
  """
  if debug:
    print(f"Evaluating: {describe_statement(statement)}", file=sys.stderr)

  try:
    if isinstance(statement, VarAssign):
      eval_var_assign(statement, env)
    elif isinstance(statement, VarUpdate):
      eval_var_update(statement, env)
    elif isinstance(statement, IfCondition):
      eval_if_condition(statement, env, output, debug)
    elif isinstance(statement, WhileLoop):
      eval_while_loop(statement, env, output, debug)
    elif isinstance(statement, FunctionCall):
      eval_function_call(statement, env, output)
    else:
      raise TypeError(f"Not a Tiny statement: {statement!r}")
  except TinyRuntimeError as e:
    e.with_location(statement.span, env)
    raise

  return env


def eval_block(statements: Iterable[Statement], env: Dict[str, int], output: TextIO,
               debug: bool = False) -> Dict[str, int]:
  """Execute statements in order"""
  for statement in statements:
    eval_statement(statement, env, output, debug)
  return env


def eval_var_assign(statement: VarAssign, env: Dict[str, int]) -> None:
  """Create or overwrite a variable"""
  env[statement.var] = statement.value


def eval_var_update(statement: VarUpdate, env: Dict[str, int]) -> None:
  """Add to an existing variable; updating an undeclared variable does nothing"""
  if statement.var in env:
    env[statement.var] = checked_add(statement.var, env[statement.var], statement.value)


def eval_if_condition(statement: IfCondition, env: Dict[str, int], output: TextIO,
                      debug: bool = False) -> None:
  """Run exactly one branch, or neither when the variable is undeclared"""
  if statement.var not in env:
    if debug:
      print(f"  '{statement.var}' is undeclared, skipping if", file=sys.stderr)
    return

  if env[statement.var] == statement.value:
    eval_block(statement.true_branch, env, output, debug)
  else:
    eval_block(statement.false_branch, env, output, debug)


def eval_while_loop(statement: WhileLoop, env: Dict[str, int], output: TextIO,
                    debug: bool = False) -> None:
  """Check the condition before every iteration; no iteration cap"""
  iterations = 0
  while evaluate_condition(env, statement.var, statement.op, statement.value):
    eval_block(statement.body, env, output, debug)
    iterations += 1

  if debug:
    print(f"  loop finished after {iterations} iterations", file=sys.stderr)


def resolve_argument(arg: Argument, env: Dict[str, int]) -> int:
  """Integer literals stand for themselves; names are looked up at call time"""
  if isinstance(arg, int):
    return arg
  if arg not in env:
    raise undefined_variable_error(arg)
  return env[arg]


def eval_function_call(statement: FunctionCall, env: Dict[str, int], output: TextIO) -> None:
  """Dispatch to a built-in; unknown names are fatal"""
  args = [resolve_argument(arg, env) for arg in statement.args]
  call_builtin(statement.name, args, output)


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_program(statements: Iterable[Statement], output: Optional[TextIO] = None,
                 debug: bool = False, env: Optional[Dict[str, int]] = None) -> Dict[str, int]:
  """
  Evaluate a program (list of statements) and return the final environment.
  A fresh environment is created unless one is passed in.
  """
  if env is None:
    env = make_runtime_env()
  if output is None:
    output = sys.stdout

  return eval_block(statements, env, output, debug)


class TinyInterpreter:
  """Owns one environment for the lifetime of one program (or session)"""

  def __init__(self, debug: bool = False, output: Optional[TextIO] = None):
    self.debug = debug
    self.output = output
    self.environment = make_runtime_env()

  def interpret_program(self, statements: Iterable[Statement]) -> Dict[str, int]:
    """Run statements against this interpreter's environment"""
    # stdout is looked up per run so redirected streams are honoured
    output = self.output if self.output is not None else sys.stdout
    return eval_program(statements, output, self.debug, self.environment)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[TextIO] = None) -> TinyInterpreter:
  """Factory function returning an interpreter with a fresh environment"""
  return TinyInterpreter(debug=debug, output=output)


def create_debug_interpreter(output: Optional[TextIO] = None) -> TinyInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)


def run_program(text: str, filename: str = "<input>", output: Optional[TextIO] = None,
                debug: bool = False) -> Dict[str, int]:
  """Parse and run source text with a fresh interpreter; returns the final environment"""
  statements = create_parser(debug).parse_string(text, filename)
  return create_interpreter(debug, output).interpret_program(statements)
