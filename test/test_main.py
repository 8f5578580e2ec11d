"""
Command line tests for the tinyscript entry point
"""

import builtins
import pytest
import main


@pytest.fixture
def script(tmp_path):
  """Write source to a temporary .tiny file and return its path"""
  def write(code: str, name: str = "prog.tiny"):
    path = tmp_path / name
    path.write_text(code, encoding="utf-8")
    return str(path)
  return write


@pytest.fixture
def session(monkeypatch):
  """Feed lines to the interactive loop; EOF ends the session"""
  monkeypatch.setattr(main, "READLINE_AVAILABLE", False)

  def feed(lines):
    pending = iter(lines)

    def fake_input(prompt=""):
      try:
        return next(pending)
      except StopIteration:
        raise EOFError
    monkeypatch.setattr(builtins, "input", fake_input)
  return feed


class TestScriptExecution:

  def test_demo_runs_both_reference_programs(self, capsys):
    main.main(["--demo"])
    assert capsys.readouterr().out == "1 2 3 \n1 \n2 \n3 \n4 \n5 \n"

  def test_failing_demo_is_reported(self, capsys, monkeypatch):
    monkeypatch.setattr(main, "DEMO_PROGRAMS", [("broken", "print(1);\nmissing(2);")])
    with pytest.raises(SystemExit) as exc_info:
      main.main(["--demo"])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert out.startswith("1 \n")
    assert "Runtime Error in '<demo:broken>'" in out
    assert "Unknown function: missing" in out

  def test_demo_parse_error_is_reported(self, capsys, monkeypatch):
    monkeypatch.setattr(main, "DEMO_PROGRAMS", [("nested", "while x < 1 {\nif x == 1 {\n}")])
    with pytest.raises(SystemExit) as exc_info:
      main.main(["--demo"])
    assert exc_info.value.code == 1
    assert "Parse error in '<demo:nested>'" in capsys.readouterr().out

  def test_runs_script(self, capsys, script):
    main.main([script("let x = 2;\nprint(x, 3);")])
    assert capsys.readouterr().out == "2 3 \n"

  def test_missing_file_exits_with_error(self, capsys, tmp_path):
    with pytest.raises(SystemExit) as exc_info:
      main.main([str(tmp_path / "absent.tiny")])
    assert exc_info.value.code == 1
    assert "does not exist" in capsys.readouterr().out

  def test_parse_error_exits_with_error(self, capsys, script):
    with pytest.raises(SystemExit) as exc_info:
      main.main([script("while x < 1 {\nif x == 1 {\n}\n}")])
    assert exc_info.value.code == 1
    assert "line 2, column 1" in capsys.readouterr().out

  def test_runtime_error_keeps_earlier_output(self, capsys, script):
    with pytest.raises(SystemExit) as exc_info:
      main.main([script("print(1);\nshout(2);\nprint(3);")])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert out.startswith("1 \n")
    assert "Unknown function: shout" in out
    assert "3 \n" not in out

  def test_debug_writes_trace_to_stderr(self, capsys, script):
    main.main(["--debug", script("let x = 1;\nprint(x);")])
    captured = capsys.readouterr()
    assert captured.out == "1 \n"
    assert "Final environment (1 bindings):" in captured.err


class TestInspection:

  def test_parse_shows_tree(self, capsys, script):
    main.main(["--parse", script("let x = 0;\nwhile x < 2 {\nx = x + 1;\n}")])
    out = capsys.readouterr().out
    assert "Parsed 2 top-level statements:" in out
    assert "WhileLoop(x < 2)\n  do:\n    VarUpdate(x += 1)\n" in out

  def test_analyze_clean_program(self, capsys, script):
    main.main(["--analyze", script("let x = 1;\nprint(x);")])
    assert "No problems found" in capsys.readouterr().out

  def test_analyze_reports_errors(self, capsys, script):
    with pytest.raises(SystemExit) as exc_info:
      main.main(["--analyze", script("foo(1);")])
    assert exc_info.value.code == 1
    assert "error: unknown function 'foo'" in capsys.readouterr().out

  def test_version(self, capsys):
    with pytest.raises(SystemExit):
      main.main(["--version"])
    assert main.VERSION in capsys.readouterr().out


class TestInteractiveMode:

  def test_environment_persists_between_lines(self, capsys, session):
    session(["let x = 4;", "x = x + 1;", "print(x);", "exit"])
    main.main(["-i"])
    assert "5 \n" in capsys.readouterr().out

  def test_block_is_collected_until_closed(self, capsys, session):
    session(["let x = 0;", "while x < 2 {", "x = x + 1;", "print(x);", "}"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "1 \n2 \n" in out
    assert "Goodbye!" in out

  def test_errors_do_not_end_the_session(self, capsys, session):
    session(["nope(1);", "print(7);", ":env"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "Unknown function: nope" in out
    assert "7 \n" in out
    assert "(no variables)" in out

  def test_only_plain_exit_ends_the_session(self, capsys, session):
    session(["exit.", "print(1);", "exit", "print(2);"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "1 \n" in out
    assert "2 \n" not in out
    assert "Goodbye!" not in out

  def test_parse_command(self, capsys, session):
    session([":parse print(1, x);"])
    main.main(["-i"])
    assert "FunctionCall(print(1, x))" in capsys.readouterr().out
