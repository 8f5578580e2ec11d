"""
Tests for the built-in table, integer helpers and error formatting
"""

import io
import pytest
from error_handling import (
  TinyParseError,
  TinyRuntimeError,
  describe_got,
  generate_suggestions,
  get_context_lines,
  parse_error_at,
)
from parsing import SourceSpan
from stdlib import BUILTIN_FUNCTIONS, call_builtin, lookup_builtin
from utilities import INT64_MAX, INT64_MIN, checked_add, compare, fits_int64


class TestBuiltins:

  def test_only_print_exists(self):
    assert list(BUILTIN_FUNCTIONS) == ['print']

  def test_print_writes_trailing_space(self):
    output = io.StringIO()
    call_builtin('print', [0, -1], output)
    assert output.getvalue() == "0 -1 \n"

  def test_unknown_builtin_lists_available_names(self):
    with pytest.raises(TinyRuntimeError) as exc_info:
      lookup_builtin('echo')
    assert exc_info.value.message == "Unknown function: echo (available: print)"


class TestIntegers:

  @pytest.mark.parametrize("op,left,right,expected", [
    ('==', 1, 1, True),
    ('!=', 1, 1, False),
    ('<', -2, 1, True),
    ('>', -2, 1, False),
    ('<=', 3, 3, True),
    ('>=', 2, 3, False),
  ])
  def test_compare(self, op, left, right, expected):
    assert compare(op, left, right) is expected

  def test_unknown_operator_compares_false(self):
    assert not compare('<>', 1, 2)

  def test_range(self):
    assert fits_int64(INT64_MAX) and fits_int64(INT64_MIN)
    assert not fits_int64(INT64_MAX + 1)
    assert not fits_int64(INT64_MIN - 1)

  def test_checked_add(self):
    assert checked_add('x', INT64_MAX - 1, 1) == INT64_MAX
    with pytest.raises(TinyRuntimeError) as exc_info:
      checked_add('x', INT64_MIN, -1)
    assert "'x'" in exc_info.value.message


class TestErrorFormatting:

  def test_context_marks_error_column(self):
    context = get_context_lines("a\nbcd\ne", 2, 3)
    assert context.split('\n') == [
      "   1: a",
      "   2: bcd",
      "        ^ Error here",
      "   3: e",
    ]

  def test_describe_got(self):
    assert describe_got("") == "empty line"
    assert describe_got("x;") == "'x;'"

  def test_suggestions(self):
    assert any("nested" in s for s in generate_suggestions("if x == 1 {"))
    assert any("';'" in s for s in generate_suggestions("let x = 1"))
    assert any("negative literal" in s for s in generate_suggestions("x += 1;"))

  def test_parse_error_at_uses_indentation_for_column(self):
    error = parse_error_at("  oops", "Invalid statement", 1, "  oops", "f.tiny")
    assert isinstance(error, TinyParseError)
    assert error.column == 3
    assert str(error).startswith("Parse error in f.tiny at line 1, column 3:\n  Invalid statement\n")

  def test_runtime_error_location_is_set_once(self):
    inner = SourceSpan("f.tiny", 4, 3, 4, 11, "oops(1);")
    outer = SourceSpan("f.tiny", 2, 1, 2, 14, "while x < 3 {")
    error = TinyRuntimeError("boom")
    assert str(error) == "Runtime error: boom"
    error.with_location(inner, {"x": 1})
    error.with_location(outer, {"x": 2})
    assert error.span is inner
    assert error.env_snapshot == {"x": 1}
    assert str(error) == "Runtime error at f.tiny:4:3-11: boom"
