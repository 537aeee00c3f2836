"""
Runtime model tests: objects, inspect output and Environment scoping
"""

import pytest
from runtime import (
  Integer, Boolean, String, Null, Array, Hash, Function, ReturnValue, Error,
  Environment, TRUE, FALSE, NULL, INT64_MAX, INT64_MIN,
  native_bool_to_boolean, is_hashable, to_int64,
)


class TestEnvironment:
  """Chained lexical scopes"""

  @pytest.fixture
  def env(self):
    return Environment()

  def test_get_missing_is_none(self, env):
    assert env.get("x") is None

  def test_define_returns_value(self, env):
    value = Integer(1)
    assert env.define("x", value) is value
    assert env.get("x") is value

  def test_lookup_walks_outward(self, env):
    env.define("x", Integer(1))
    inner = env.enclosed().enclosed()
    assert inner.get("x") == Integer(1)

  def test_define_shadows_without_touching_outer(self, env):
    env.define("x", Integer(1))
    inner = env.enclosed()
    inner.define("x", Integer(2))
    assert inner.get("x") == Integer(2)
    assert env.get("x") == Integer(1)

  def test_outer_does_not_see_inner(self, env):
    inner = env.enclosed()
    inner.define("y", TRUE)
    assert env.get("y") is None
    assert inner.get("y") is TRUE

  def test_scopes_are_shared_by_reference(self, env):
    inner = env.enclosed()
    env.define("late", Integer(3))
    assert inner.get("late") == Integer(3)

  def test_rebinding_replaces_value(self, env):
    env.define("x", Integer(1))
    env.define("x", String("two"))
    assert env.get("x") == String("two")


class TestInspect:
  """User-visible rendering of runtime values"""

  @pytest.mark.parametrize("obj,expected", [
      (Integer(5), "5"),
      (Integer(-12), "-12"),
      (TRUE, "true"),
      (FALSE, "false"),
      (NULL, "null"),
      (String("hi there"), "hi there"),
      (Array([]), "[]"),
      (Array([Integer(1), TRUE, String("s")]), "[1, true, s]"),
      (Hash({}), "{}"),
      (Hash({String("a"): Integer(1), Integer(2): NULL}), "{a: 1, 2: null}"),
      (ReturnValue(Integer(7)), "7"),
      (Error("type mismatch: INTEGER + BOOLEAN"), "ERROR: type mismatch: INTEGER + BOOLEAN"),
  ])
  def test_inspect(self, obj, expected):
    assert obj.inspect() == expected

  @pytest.mark.parametrize("obj,expected", [
      (Integer(1), "INTEGER"),
      (TRUE, "BOOLEAN"),
      (String(""), "STRING"),
      (NULL, "NULL"),
      (Array([]), "ARRAY"),
      (Hash({}), "HASH"),
      (Function([], None, Environment()), "FUNCTION"),
      (ReturnValue(NULL), "RETURN_VALUE"),
      (Error("x"), "ERROR"),
  ])
  def test_type_names(self, obj, expected):
    assert obj.type_name == expected


class TestValues:
  """Value semantics, singletons and hash keys"""

  def test_native_bool_returns_singletons(self):
    assert native_bool_to_boolean(True) is TRUE
    assert native_bool_to_boolean(False) is FALSE

  def test_null_singleton_equals_any_null(self):
    assert NULL == Null()

  def test_hashable_kinds(self):
    assert is_hashable(Integer(1))
    assert is_hashable(TRUE)
    assert is_hashable(String("k"))
    assert not is_hashable(NULL)
    assert not is_hashable(Array([]))
    assert not is_hashable(Hash({}))

  def test_hash_keys_distinguish_kind(self):
    pairs = {Integer(1): String("int"), Boolean(True): String("bool")}
    assert len(pairs) == 2
    assert pairs[Integer(1)] == String("int")
    assert pairs[TRUE] == String("bool")

  def test_equal_strings_are_the_same_key(self):
    pairs = {String("k"): Integer(1)}
    assert pairs[String("k")] == Integer(1)

  def test_arrays_compare_by_identity(self):
    a = Array([Integer(1)])
    assert a == a
    assert a != Array([Integer(1)])


class TestInt64:
  """Two's-complement wrapping"""

  @pytest.mark.parametrize("value,expected", [
      (0, 0),
      (-1, -1),
      (INT64_MAX, INT64_MAX),
      (INT64_MIN, INT64_MIN),
      (INT64_MAX + 1, INT64_MIN),
      (INT64_MIN - 1, INT64_MAX),
      (2 ** 64, 0),
      (2 ** 64 + 5, 5),
  ])
  def test_to_int64(self, value, expected):
    assert to_int64(value) == expected
