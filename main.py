"""
Tiny Programming Language - Main Entry Point
A minimal line-oriented imperative scripting language
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import TinyParseError, TinyRuntimeError
from interpreter import create_interpreter, TinyInterpreter
from parsing import create_parser, pretty_print_statement, Statement, TinyParser
from semantics import analyze_program, format_diagnostic, has_errors


VERSION = "Tiny v0.1.0"

# The two reference programs run by --demo
DEMO_PROGRAMS = [
    ("branching", """
        let x = 10;
        let y = 20;
        x = x + 5;
        if x == 15 {
            print(1, 2, 3);
        } else {
            print(4, 5, 6);
        }
    """),
    ("counting loop", """
        let x = 0;
        while x < 5 {
            x = x + 1;
            print(x);
        }
    """),
]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='tinyscript',
      description='Tiny - a minimal line-oriented imperative scripting language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.tiny            # Run a Tiny script
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse script.tiny    # Parse and show the statement tree
  %(prog)s --analyze script.tiny  # Parse and report likely mistakes
  %(prog)s --demo                 # Run the built-in sample programs
  %(prog)s --debug script.tiny    # Run with trace output on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Tiny script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the statement tree'
  )

  parser.add_argument(
      '--analyze',
      action='store_true',
      help='Parse file, show the statement tree and analysis diagnostics'
  )

  parser.add_argument(
      '--demo',
      action='store_true',
      help='Run the built-in sample programs'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace parsing and evaluation on stderr'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


# ============================================================================
# ERROR REPORTING
# ============================================================================

def report_parse_error(script_path: str, e: TinyParseError) -> None:
  print(f"Parse error in '{script_path}':")
  print(e)


def report_runtime_error(script_path: str, e: TinyRuntimeError, debug: bool = False) -> None:
  """Show a runtime error with its location and, in debug mode, the environment"""
  print(f"\n{'='*70}")
  print(f"Runtime Error in '{script_path}'")
  print(f"{'='*70}")
  print(f"\nError: {e.message}")

  if e.span:
    print(f"\nLocation: {e.span}")

  if e.source_line:
    print(f"\nSource:")
    print(f"  {e.source_line}")
    print(f"  {'~' * len(e.source_line)}")

  if e.env_snapshot and debug:
    print(f"\nEnvironment at error:")
    for name, value in list(e.env_snapshot.items())[:10]:
      print(f"  {name} = {value}")
    if len(e.env_snapshot) > 10:
      print(f"  ... and {len(e.env_snapshot) - 10} more bindings")

  print(f"\n{'='*70}\n")


def report_file_error(script_path: str, e: OSError) -> None:
  if isinstance(e, FileNotFoundError):
    print(f"Error: Script file '{script_path}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
  elif isinstance(e, PermissionError):
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
  else:
    print(f"Error: Cannot read '{script_path}': {e}")


# ============================================================================
# SCRIPT COMMANDS
# ============================================================================

def parse_file(script_path: str, debug: bool = False) -> List[Statement]:
  """Parse a Tiny script file, show the statement tree and return it"""
  try:
    parser = create_parser(debug)
    statements = parser.parse_file(script_path)
  except OSError as e:
    report_file_error(script_path, e)
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)
  except TinyParseError as e:
    report_parse_error(script_path, e)
    sys.exit(1)

  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)
  for statement in statements:
    print(pretty_print_statement(statement), end='')
  return statements


def analyze_file(script_path: str, debug: bool = False) -> None:
  """Parse a Tiny script file, show the statement tree and analysis diagnostics"""
  statements = parse_file(script_path, debug)
  diagnostics = analyze_program(statements)

  print()
  if not diagnostics:
    print("No problems found")
    return

  for diagnostic in diagnostics:
    print(format_diagnostic(diagnostic))

  if has_errors(diagnostics):
    sys.exit(1)


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a Tiny script file"""
  try:
    parser = create_parser(debug)
    interpreter = create_interpreter(debug)

    statements = parser.parse_file(script_path)
    final_env = interpreter.interpret_program(statements)

    if debug:
      print(f"Final environment ({len(final_env)} bindings):", file=sys.stderr)
      for name, value in final_env.items():
        print(f"  {name} = {value}", file=sys.stderr)

  except OSError as e:
    report_file_error(script_path, e)
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)
  except TinyParseError as e:
    report_parse_error(script_path, e)
    sys.exit(1)
  except TinyRuntimeError as e:
    sys.stdout.flush()
    report_runtime_error(script_path, e, debug)
    sys.exit(1)


def run_demo(debug: bool = False) -> None:
  """Run each reference program with its own interpreter"""
  for name, code in DEMO_PROGRAMS:
    if debug:
      print(f"Running demo program: {name}", file=sys.stderr)
    source_name = f"<demo:{name}>"
    try:
      statements = create_parser(debug).parse_string(code, source_name)
      create_interpreter(debug).interpret_program(statements)
    except TinyParseError as e:
      report_parse_error(source_name, e)
      sys.exit(1)
    except TinyRuntimeError as e:
      sys.stdout.flush()
      report_runtime_error(source_name, e, debug)
      sys.exit(1)


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.tiny_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = [
      # Keywords
      "let", "if", "else", "while",
      # Built-in functions
      "print",
      # REPL commands
      ":parse", ":env", ":help", "exit",
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def opens_block(parser: TinyParser, line: str) -> bool:
  """True when a top-level line starts an if/while block"""
  grammar = parser.grammar
  return (grammar.match(grammar.if_open, line) is not None or
          grammar.match(grammar.while_open, line) is not None)


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <line>     - Show the parsed statement")
  print("  :env              - Show current environment")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  let x = 5;                - Declare or overwrite a variable")
  print("  x = x + 1;                - Add to an existing variable")
  print("  if x == 5 {               - Equality branch (optional '} else {')")
  print("  while x < 10 {            - Loop with == != < > <= >=")
  print("  print(1, 2, x);           - Print integers")
  print("  Blocks end with a line containing only '}'")


def execute_chunk(parser: TinyParser, interpreter: TinyInterpreter, code: str) -> None:
  """Parse and run a complete chunk of session input"""
  try:
    statements = parser.parse_string(code, "<stdin>")
    interpreter.interpret_program(statements)
  except TinyParseError as e:
    print(e)
  except TinyRuntimeError as e:
    print(f"\nRuntime Error:")
    print(f"  {e.message}")
    if e.source_line:
      print(f"  Source: {e.source_line}")
    print()
  except KeyboardInterrupt:
    print("\nInterrupted")


def run_interactive_mode(debug: bool = False) -> None:
  """Run Tiny in interactive mode with one persistent environment"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_parser(debug)
  interpreter = create_interpreter(debug)
  pending: List[str] = []

  while True:
    try:
      code = input("....> " if pending else "tiny> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    line = code.strip()

    if pending:
      pending.append(code)
      if parser.grammar.is_block_close(line):
        execute_chunk(parser, interpreter, "\n".join(pending))
        pending = []
      continue

    if line == "exit":
      break

    if not line:
      continue

    if line.startswith(":parse "):
      try:
        for statement in parser.parse_string(line[7:], "<stdin>"):
          print(pretty_print_statement(statement), end='')
      except TinyParseError as e:
        print(e)
      continue

    if line == ":env":
      print("Current environment:")
      if interpreter.environment:
        for name, value in interpreter.environment.items():
          print(f"  {name} = {value}")
      else:
        print("  (no variables)")
      continue

    if line == ":help":
      show_help()
      continue

    if opens_block(parser, line):
      pending.append(code)
      continue

    execute_chunk(parser, interpreter, code)


def show_language_info() -> None:
  """Show Tiny language information"""
  print("Tiny Programming Language")
  print("=" * 50)
  print("A minimal imperative language with:")
  print("• Integer variables (let / update)")
  print("• Equality branches (if / else)")
  print("• Comparison loops (while)")
  print("• One built-in: print")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Tiny"""
  if argv is None:
    argv = sys.argv[1:]

  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  # No arguments - show info and start interactive mode
  if not argv:
    show_language_info()
    print("Starting interactive mode...")
    print("Use 'tinyscript --help' for command line options")
    print()
    run_interactive_mode(debug=False)
    return

  if args.demo:
    run_demo(debug=args.debug)

  elif args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.analyze:
      analyze_file(args.script, debug=args.debug)
    elif args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug)

  elif args.interactive:
    run_interactive_mode(debug=args.debug)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
