"""
Fern Runtime Model
Tagged runtime values and the chained lexical Environment
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ast_nodes import BlockStatement, Identifier


# ============================================================================
# TYPE NAMES
# ============================================================================

INTEGER_OBJ = "INTEGER"
BOOLEAN_OBJ = "BOOLEAN"
STRING_OBJ = "STRING"
NULL_OBJ = "NULL"
ARRAY_OBJ = "ARRAY"
HASH_OBJ = "HASH"
FUNCTION_OBJ = "FUNCTION"
RETURN_VALUE_OBJ = "RETURN_VALUE"
ERROR_OBJ = "ERROR"

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


def to_int64(value: int) -> int:
  """Wrap an unbounded int into the signed 64-bit range"""
  return (value - INT64_MIN) % 2 ** 64 + INT64_MIN


# ============================================================================
# OBJECTS
# ============================================================================

class Object:
  """Base class of every runtime value"""
  type_name = ""

  def inspect(self) -> str:
    raise NotImplementedError


@dataclass(frozen=True)
class Integer(Object):
  type_name = INTEGER_OBJ
  value: int

  def inspect(self) -> str:
    return str(self.value)


@dataclass(frozen=True)
class Boolean(Object):
  type_name = BOOLEAN_OBJ
  value: bool

  def inspect(self) -> str:
    return "true" if self.value else "false"


@dataclass(frozen=True)
class String(Object):
  type_name = STRING_OBJ
  value: str

  def inspect(self) -> str:
    return self.value


@dataclass(frozen=True)
class Null(Object):
  type_name = NULL_OBJ

  def inspect(self) -> str:
    return "null"


@dataclass(eq=False)
class Array(Object):
  type_name = ARRAY_OBJ
  elements: List[Object] = field(default_factory=list)

  def inspect(self) -> str:
    return "[" + ", ".join(e.inspect() for e in self.elements) + "]"


@dataclass(eq=False)
class Hash(Object):
  """Mapping keyed by Integer, Boolean or String objects (kind and value both count)"""
  type_name = HASH_OBJ
  pairs: Dict[Object, Object] = field(default_factory=dict)

  def inspect(self) -> str:
    items = ", ".join(f"{k.inspect()}: {v.inspect()}" for k, v in self.pairs.items())
    return "{" + items + "}"


@dataclass(eq=False)
class Function(Object):
  """A closure: parameters, body and the Environment it was defined in (shared)"""
  type_name = FUNCTION_OBJ
  parameters: List[Identifier]
  body: BlockStatement
  env: "Environment"

  def inspect(self) -> str:
    params = ", ".join(str(p) for p in self.parameters)
    return f"fun({params}) {self.body}"


@dataclass(eq=False)
class ReturnValue(Object):
  """Signal carrying a `return` out of the enclosing function"""
  type_name = RETURN_VALUE_OBJ
  value: Object

  def inspect(self) -> str:
    return self.value.inspect()


@dataclass(frozen=True)
class Error(Object):
  """Runtime failure propagated as a value"""
  type_name = ERROR_OBJ
  message: str

  def inspect(self) -> str:
    return f"ERROR: {self.message}"


# The only Boolean and Null instances the evaluator hands out
TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()

HASHABLE_TYPES = (Integer, Boolean, String)


def native_bool_to_boolean(value: bool) -> Boolean:
  return TRUE if value else FALSE


def is_hashable(obj: Object) -> bool:
  return isinstance(obj, HASHABLE_TYPES)


# ============================================================================
# ENVIRONMENT
# ============================================================================

class Environment:
  """One lexical scope: local bindings plus an optional enclosing scope"""

  def __init__(self, outer: Optional["Environment"] = None):
    self.store: Dict[str, Object] = {}
    self.outer = outer

  def get(self, name: str) -> Optional[Object]:
    """Look up a value in the environment chain, None when unbound"""
    if name in self.store:
      return self.store[name]
    elif self.outer is not None:
      return self.outer.get(name)
    return None

  def define(self, name: str, value: Object) -> Object:
    """Bind name in this scope only, shadowing any outer binding"""
    self.store[name] = value
    return value

  def enclosed(self) -> "Environment":
    """New child scope whose parent is this one"""
    return Environment(outer=self)

  def __repr__(self) -> str:
    return f"Environment({sorted(self.store)}, outer={'yes' if self.outer else 'no'})"
