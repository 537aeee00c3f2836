"""
Test configuration for Fern tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lexing import tokenize
from parsing import parse, create_parser
from interpreter import evaluate
from runtime import Environment


@pytest.fixture
def parser():
  """Provide a fresh parser facade for each test"""
  return create_parser()


@pytest.fixture
def parse_ok():
  """Parse source, failing the test on any syntax error"""
  def _parse(source):
    program, errors = parse(tokenize(source))
    assert errors == [], f"unexpected syntax errors: {errors}"
    return program
  return _parse


@pytest.fixture
def run(parse_ok):
  """Evaluate source in a fresh global environment (or the one given)"""
  def _run(source, env=None):
    program = parse_ok(source)
    return evaluate(program, env if env is not None else Environment())
  return _run
