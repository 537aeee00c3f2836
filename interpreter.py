"""
Fern Interpreter
Recursive AST-walking evaluator. Runtime failures are ERROR objects that
short-circuit evaluation; the Environment is always passed explicitly
"""

from typing import List, Optional

from ast_nodes import (
  Node, Program, BlockStatement, ExpressionStatement, VarStatement, ReturnStatement,
  Identifier, IntegerLiteral, BooleanLiteral, StringLiteral, ArrayLiteral, HashLiteral,
  PrefixExpression, InfixExpression, IfExpression, FunctionLiteral, CallExpression,
  IndexExpression, Expression,
)
from runtime import (
  Object, Integer, String, Array, Hash, Function, ReturnValue, Error, Boolean, Null,
  Environment, TRUE, FALSE, NULL,
  native_bool_to_boolean, is_hashable, to_int64,
)
from parsing import create_parser
from error_handling import FernRuntimeError


# ============================================================================
# HELPERS
# ============================================================================

def new_error(message: str) -> Error:
  return Error(message)


def is_error(obj: Optional[Object]) -> bool:
  return isinstance(obj, Error)


def is_signal(obj: Optional[Object]) -> bool:
  """Error or ReturnValue: handed up unchanged to the nearest block or call frame"""
  return isinstance(obj, (Error, ReturnValue))


def is_truthy(obj: Object) -> bool:
  """Only FALSE and NULL are falsy"""
  if obj is NULL or obj is FALSE:
    return False
  return True


# ============================================================================
# DISPATCH
# ============================================================================

def evaluate(node: Node, env: Environment, debug: bool = False) -> Object:
  """
  Evaluate an AST node in env and return the resulting object.
  ReturnValue and Error objects are signals for the enclosing frames.
  """
  if debug:
    print(f"Evaluating: {type(node).__name__}")

  # Statements
  if isinstance(node, Program):
    return eval_program(node, env, debug)
  elif isinstance(node, ExpressionStatement):
    return evaluate(node.expression, env, debug)
  elif isinstance(node, BlockStatement):
    return eval_block_statement(node, env, debug)
  elif isinstance(node, ReturnStatement):
    if node.return_value is None:
      return ReturnValue(NULL)
    value = evaluate(node.return_value, env, debug)
    if is_signal(value):
      return value
    return ReturnValue(value)
  elif isinstance(node, VarStatement):
    value = evaluate(node.value, env, debug)
    if is_signal(value):
      return value
    return env.define(node.name.value, value)

  # Expressions
  elif isinstance(node, IntegerLiteral):
    return Integer(node.value)
  elif isinstance(node, BooleanLiteral):
    return native_bool_to_boolean(node.value)
  elif isinstance(node, StringLiteral):
    return String(node.value)
  elif isinstance(node, PrefixExpression):
    right = evaluate(node.right, env, debug)
    if is_signal(right):
      return right
    return eval_prefix_expression(node.operator, right)
  elif isinstance(node, InfixExpression):
    left = evaluate(node.left, env, debug)
    if is_signal(left):
      return left
    right = evaluate(node.right, env, debug)
    if is_signal(right):
      return right
    return eval_infix_expression(node.operator, left, right)
  elif isinstance(node, IfExpression):
    return eval_if_expression(node, env, debug)
  elif isinstance(node, Identifier):
    return eval_identifier(node, env)
  elif isinstance(node, FunctionLiteral):
    return Function(node.parameters, node.body, env)
  elif isinstance(node, CallExpression):
    function = evaluate(node.function, env, debug)
    if is_signal(function):
      return function
    args = eval_expressions(node.arguments, env, debug)
    if len(args) == 1 and is_signal(args[0]):
      return args[0]
    return apply_function(function, args, debug)
  elif isinstance(node, ArrayLiteral):
    elements = eval_expressions(node.elements, env, debug)
    if len(elements) == 1 and is_signal(elements[0]):
      return elements[0]
    return Array(elements)
  elif isinstance(node, HashLiteral):
    return eval_hash_literal(node, env, debug)
  elif isinstance(node, IndexExpression):
    left = evaluate(node.left, env, debug)
    if is_signal(left):
      return left
    index = evaluate(node.index, env, debug)
    if is_signal(index):
      return index
    return eval_index_expression(left, index)

  raise TypeError(f"cannot evaluate {type(node).__name__}")


# ============================================================================
# STATEMENTS
# ============================================================================

def eval_program(program: Program, env: Environment, debug: bool = False) -> Object:
  """Run the top-level statements; a top-level `return` ends the program with its value"""
  result: Object = NULL

  for statement in program.statements:
    result = evaluate(statement, env, debug)

    if isinstance(result, ReturnValue):
      return result.value
    if isinstance(result, Error):
      return result

  return result


def eval_block_statement(block: BlockStatement, env: Environment, debug: bool = False) -> Object:
  """Like eval_program, but a ReturnValue is passed up still wrapped"""
  result: Object = NULL

  for statement in block.statements:
    result = evaluate(statement, env, debug)

    if isinstance(result, (ReturnValue, Error)):
      return result

  return result


# ============================================================================
# OPERATORS
# ============================================================================

def eval_prefix_expression(operator: str, right: Object) -> Object:
  if operator == "!":
    return eval_bang_operator_expression(right)
  elif operator == "-":
    return eval_minus_prefix_operator_expression(right)
  return new_error(f"unknown operator: {operator}{right.type_name}")


def eval_bang_operator_expression(right: Object) -> Object:
  if right is TRUE:
    return FALSE
  elif right is FALSE:
    return TRUE
  elif right is NULL:
    return TRUE
  return FALSE


def eval_minus_prefix_operator_expression(right: Object) -> Object:
  if not isinstance(right, Integer):
    return new_error(f"unknown operator: -{right.type_name}")
  return Integer(to_int64(-right.value))


def eval_infix_expression(operator: str, left: Object, right: Object) -> Object:
  if left.type_name != right.type_name:
    return new_error(f"type mismatch: {left.type_name} {operator} {right.type_name}")
  elif isinstance(left, Integer) and isinstance(right, Integer):
    return eval_integer_infix_expression(operator, left, right)
  elif operator == "==":
    return native_bool_to_boolean(objects_identical(left, right))
  elif operator == "!=":
    return native_bool_to_boolean(not objects_identical(left, right))
  return new_error(f"unknown operator: {left.type_name} {operator} {right.type_name}")


def objects_identical(left: Object, right: Object) -> bool:
  """Equality for same-typed non-integer operands.

  Booleans and null compare by value. Every other kind compares by identity,
  so two separately built strings, arrays or hashes are never equal.
  """
  if isinstance(left, (Boolean, Null)):
    return left == right
  return left is right


def eval_integer_infix_expression(operator: str, left: Integer, right: Integer) -> Object:
  left_val = left.value
  right_val = right.value

  if operator == "+":
    return Integer(to_int64(left_val + right_val))
  elif operator == "-":
    return Integer(to_int64(left_val - right_val))
  elif operator == "*":
    return Integer(to_int64(left_val * right_val))
  elif operator == "/":
    if right_val == 0:
      return new_error("division by zero")
    return Integer(to_int64(truncated_division(left_val, right_val)))
  elif operator == "<":
    return native_bool_to_boolean(left_val < right_val)
  elif operator == ">":
    return native_bool_to_boolean(left_val > right_val)
  elif operator == "<=":
    return native_bool_to_boolean(left_val <= right_val)
  elif operator == ">=":
    return native_bool_to_boolean(left_val >= right_val)
  elif operator == "==":
    return native_bool_to_boolean(left_val == right_val)
  elif operator == "!=":
    return native_bool_to_boolean(left_val != right_val)
  return new_error(f"unknown operator: {left.type_name} {operator} {right.type_name}")


def truncated_division(dividend: int, divisor: int) -> int:
  """Integer division rounding toward zero"""
  quotient = abs(dividend) // abs(divisor)
  if (dividend < 0) != (divisor < 0):
    return -quotient
  return quotient


# ============================================================================
# CONTROL FLOW AND NAMES
# ============================================================================

def eval_if_expression(node: IfExpression, env: Environment, debug: bool = False) -> Object:
  condition = evaluate(node.condition, env, debug)
  if is_signal(condition):
    return condition

  if is_truthy(condition):
    return evaluate(node.consequence, env, debug)
  elif node.alternative is not None:
    return evaluate(node.alternative, env, debug)
  return NULL


def eval_identifier(node: Identifier, env: Environment) -> Object:
  value = env.get(node.value)
  if value is None:
    return new_error(f"unknown identifier: {node.value}")
  return value


def eval_expressions(expressions: List[Expression], env: Environment, debug: bool = False) -> List[Object]:
  """Evaluate left to right; on the first error or return signal return just [signal]"""
  result = []

  for expression in expressions:
    evaluated = evaluate(expression, env, debug)
    if is_signal(evaluated):
      return [evaluated]
    result.append(evaluated)

  return result


# ============================================================================
# FUNCTIONS
# ============================================================================

def apply_function(function: Object, args: List[Object], debug: bool = False) -> Object:
  if not isinstance(function, Function):
    return new_error(f"not a function: {function.type_name}")

  if len(args) != len(function.parameters):
    return new_error(
        f"wrong number of arguments: want={len(function.parameters)}, got={len(args)}")

  extended_env = extend_function_env(function, args)
  evaluated = evaluate(function.body, extended_env, debug)
  return unwrap_return_value(evaluated)


def extend_function_env(function: Function, args: List[Object]) -> Environment:
  """Call scope: a child of the closure's environment, not of the caller's"""
  env = function.env.enclosed()

  for param, arg in zip(function.parameters, args):
    env.define(param.value, arg)

  return env


def unwrap_return_value(obj: Object) -> Object:
  if isinstance(obj, ReturnValue):
    return obj.value
  return obj


# ============================================================================
# COLLECTIONS
# ============================================================================

def eval_index_expression(left: Object, index: Object) -> Object:
  if isinstance(left, Array) and isinstance(index, Integer):
    return eval_array_index_expression(left, index)
  elif isinstance(left, Hash):
    return eval_hash_index_expression(left, index)
  return new_error(f"index operator not supported: {left.type_name}")


def eval_array_index_expression(array: Array, index: Integer) -> Object:
  idx = index.value
  if idx < 0 or idx >= len(array.elements):
    return NULL
  return array.elements[idx]


def eval_hash_index_expression(hash_obj: Hash, index: Object) -> Object:
  if not is_hashable(index):
    return new_error(f"unusable as hash key: {index.type_name}")
  return hash_obj.pairs.get(index, NULL)


def eval_hash_literal(node: HashLiteral, env: Environment, debug: bool = False) -> Object:
  pairs = {}

  for key_node, value_node in node.pairs:
    key = evaluate(key_node, env, debug)
    if is_signal(key):
      return key

    if not is_hashable(key):
      return new_error(f"unusable as hash key: {key.type_name}")

    value = evaluate(value_node, env, debug)
    if is_signal(value):
      return value

    pairs[key] = value

  return Hash(pairs)


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

class FernInterpreter:
  """Parser plus evaluator over one persistent global Environment"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.parser = create_parser(debug)
    self.global_env = Environment()

  def interpret(self, program: Program) -> Object:
    """Evaluate an error-free Program in the global environment"""
    return evaluate(program, self.global_env, self.debug)

  def run_string(self, text: str, filename: str = "<input>") -> Object:
    """Parse and evaluate text; raises FernParseError or FernRuntimeError"""
    program = self.parser.parse_checked(text, filename)
    result = self.interpret(program)
    if is_error(result):
      raise FernRuntimeError(result.message)
    return result


def create_interpreter(debug: bool = False) -> FernInterpreter:
  """Factory function returning an interpreter"""
  return FernInterpreter(debug=debug)


def create_debug_interpreter() -> FernInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
