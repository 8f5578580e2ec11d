"""
Test configuration for Tiny interpreter tests
"""

import io
import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from interpreter import create_interpreter


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def run():
  """Parse and run source with a fresh interpreter; returns (output, environment)"""
  def run_source(code: str):
    output = io.StringIO()
    statements = create_parser().parse_string(code)
    env = create_interpreter(output=output).interpret_program(statements)
    return output.getvalue(), env
  return run_source


@pytest.fixture
def examples_dir():
  """Get the examples directory path"""
  return project_root / "examples"
