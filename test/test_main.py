"""
Tests for the command line driver and REPL helpers
"""

import pytest
import sys

import main
from main import (
  create_arg_parser, read_script, tokenize_file, parse_file, run_script_file,
  eval_repl_line, VERSION,
)
from interpreter import create_interpreter


@pytest.fixture
def script(tmp_path):
  """Write source to a temporary .fern file and return its path"""
  def _script(source, name="prog.fern"):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)
  return _script


class TestArguments:
  """Command line flags"""

  def test_defaults(self):
    args = create_arg_parser().parse_args([])
    assert args.script is None
    assert not args.interactive
    assert not args.tokens
    assert not args.parse
    assert not args.debug

  def test_flags(self):
    args = create_arg_parser().parse_args(["--parse", "--debug", "x.fern"])
    assert args.script == "x.fern"
    assert args.parse
    assert args.debug

  def test_version(self, capsys):
    with pytest.raises(SystemExit) as exc_info:
      create_arg_parser().parse_args(["--version"])
    assert exc_info.value.code == 0
    assert VERSION in capsys.readouterr().out


class TestScripts:
  """Running, tokenizing and parsing files"""

  def test_run_prints_result(self, script, capsys):
    run_script_file(script("const f = fun(x) { x * 2 }; f(21)"))
    assert capsys.readouterr().out == "42\n"

  def test_run_prints_nothing_for_null(self, script, capsys):
    run_script_file(script("if (false) { 1 }"))
    assert capsys.readouterr().out == ""

  def test_run_prints_collections(self, script, capsys):
    run_script_file(script('[1, "two", {"k": true}]'))
    assert capsys.readouterr().out == "[1, two, {k: true}]\n"

  def test_runtime_error_exits(self, script, capsys):
    path = script("const x = 1;\nx + true")
    with pytest.raises(SystemExit) as exc_info:
      run_script_file(path)
    assert exc_info.value.code == 1
    output = capsys.readouterr().out
    assert "Runtime Error" in output
    assert "type mismatch: INTEGER + BOOLEAN" in output

  def test_parse_error_exits(self, script, capsys):
    path = script("const x 1;")
    with pytest.raises(SystemExit) as exc_info:
      run_script_file(path)
    assert exc_info.value.code == 1
    output = capsys.readouterr().out
    assert "1 syntax error(s)" in output
    assert "expected next token to be =, got INT instead" in output

  def test_deep_recursion_is_reported(self, script, capsys):
    path = script("const down = fun(n) { down(n + 1) }; down(0)")
    with pytest.raises(SystemExit) as exc_info:
      run_script_file(path)
    assert exc_info.value.code == 1
    assert "maximum recursion depth exceeded" in capsys.readouterr().out

  def test_missing_file(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
      read_script(str(tmp_path / "nope.fern"))
    assert exc_info.value.code == 1
    assert "not found" in capsys.readouterr().out

  def test_tokenize_file(self, script, capsys):
    tokenize_file(script("const a = 1;"))
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 6
    assert "CONST" in lines[0]
    assert "EOF" in lines[-1]

  def test_parse_file_prints_tree_and_canonical_form(self, script, capsys):
    parse_file(script("const a = -1 * 2 + 3;"))
    output = capsys.readouterr().out
    assert "Parsed 1 top-level statements:" in output
    assert "VarStatement(const)" in output
    assert "Canonical form:\nconst a = ((-1 * 2) + 3);\n" in output

  def test_parse_file_reports_all_errors(self, script, capsys):
    path = script("const = 1;\nconst b 2;")
    with pytest.raises(SystemExit):
      parse_file(path)
    output = capsys.readouterr().out
    assert "Parse error at line 1:" in output
    assert "Parse error at line 2:" in output


class TestRepl:
  """Single REPL evaluations share one interpreter"""

  @pytest.fixture
  def interpreter(self):
    return create_interpreter()

  def test_echoes_result(self, interpreter, capsys):
    eval_repl_line("1 + 2", interpreter)
    assert capsys.readouterr().out == "=> 3\n"

  def test_bindings_persist_between_lines(self, interpreter, capsys):
    eval_repl_line("const x = 5;", interpreter)
    eval_repl_line("x * 2", interpreter)
    assert capsys.readouterr().out.splitlines() == ["=> 5", "=> 10"]

  def test_null_is_echoed(self, interpreter, capsys):
    eval_repl_line("if (false) { 1 }", interpreter)
    assert capsys.readouterr().out == "=> null\n"

  def test_syntax_errors_are_printed(self, interpreter, capsys):
    eval_repl_line("const = 1;", interpreter)
    output = capsys.readouterr().out
    assert "Parse error at line 1:" in output
    assert "expected next token to be IDENT, got = instead" in output

  def test_runtime_errors_are_printed(self, interpreter, capsys):
    eval_repl_line("missing", interpreter)
    output = capsys.readouterr().out
    assert "Runtime Error:" in output
    assert "unknown identifier: missing" in output


class TestMain:
  """The `fern` entry point"""

  def test_runs_script_argument(self, script, capsys, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["fern", script("[1, 2][1]")])
    main.main()
    assert capsys.readouterr().out == "2\n"

  def test_missing_script_argument(self, tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["fern", str(tmp_path / "missing.fern")])
    with pytest.raises(SystemExit) as exc_info:
      main.main()
    assert exc_info.value.code == 1
    assert "not found" in capsys.readouterr().out
