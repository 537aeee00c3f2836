"""
Fern Abstract Syntax Tree
Immutable statement and expression nodes with a canonical printed form
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass

from lexing import Token


class Node:
    """Base class of every AST node"""
    token: Token

    def token_literal(self) -> str:
        return self.token.literal

    @property
    def line(self) -> int:
        return self.token.line


class Statement(Node):
    pass


class Expression(Node):
    pass


def join_statements(statements: List[Statement]) -> str:
    """Canonical text of a statement sequence, separated so it re-parses the same way"""
    parts = []
    for i, statement in enumerate(statements):
        text = str(statement)
        if i < len(statements) - 1 and not text.endswith(";"):
            text += ";"
        parts.append(text)
    return " ".join(parts)


def _operand(expression: "Expression") -> str:
    # A bare prefix operand would otherwise absorb the call or index that follows it
    if isinstance(expression, PrefixExpression):
        return f"({expression})"
    return str(expression)


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Program(Node):
    """Root of the tree: the ordered top-level statements"""
    statements: List[Statement]

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ""

    @property
    def line(self) -> int:
        return self.statements[0].line if self.statements else 1

    def __str__(self) -> str:
        return join_statements(self.statements)


@dataclass(frozen=True)
class Identifier(Expression):
    token: Token
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VarStatement(Statement):
    """`const name = value;` or `var name = value;`"""
    token: Token
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"{self.token_literal()} {self.name} = {self.value};"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    token: Token
    return_value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.return_value is None:
            return f"{self.token_literal()};"
        return f"{self.token_literal()} {self.return_value};"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    """An expression used as a statement"""
    token: Token
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass(frozen=True)
class BlockStatement(Statement):
    """Statements between braces, used by if/else and function bodies"""
    token: Token
    statements: List[Statement]

    def __str__(self) -> str:
        if not self.statements:
            return "{}"
        return "{ " + join_statements(self.statements) + " }"


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class IntegerLiteral(Expression):
    token: Token
    value: int

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    token: Token
    value: bool

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class StringLiteral(Expression):
    token: Token
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    token: Token
    elements: List[Expression]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class HashLiteral(Expression):
    """Key/value pairs in written order"""
    token: Token
    pairs: List[Tuple[Expression, Expression]]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{key}: {value}" for key, value in self.pairs) + "}"


@dataclass(frozen=True)
class PrefixExpression(Expression):
    token: Token
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"{self.operator}{self.right}"


@dataclass(frozen=True)
class InfixExpression(Expression):
    token: Token
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class IfExpression(Expression):
    token: Token
    condition: Expression
    consequence: BlockStatement
    alternative: Optional[BlockStatement] = None

    def __str__(self) -> str:
        result = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            result += f" else {self.alternative}"
        return result


@dataclass(frozen=True)
class FunctionLiteral(Expression):
    token: Token
    parameters: List[Identifier]
    body: BlockStatement

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"{self.token_literal()}({params}) {self.body}"


@dataclass(frozen=True)
class CallExpression(Expression):
    token: Token
    function: Expression
    arguments: List[Expression]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{_operand(self.function)}({args})"


@dataclass(frozen=True)
class IndexExpression(Expression):
    token: Token
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({_operand(self.left)}[{self.index}])"
