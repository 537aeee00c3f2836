"""
Fern Programming Language Parser
Precedence-climbing (Pratt) parser turning a token stream into an AST,
collecting syntax errors instead of stopping at the first one
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from lexing import (
    Token, FernTokenizer,
    ILLEGAL, EOF, IDENT, INT, STRING,
    ASSIGN, PLUS, MINUS, BANG, ASTERISK, SLASH, LT, GT, LTE, GTE, EQ, NEQ,
    COMMA, SEMICOLON, COLON, LPAREN, RPAREN, LBRACE, RBRACE, LBRACKET, RBRACKET,
    FUNCTION, CONST, VAR, TRUE, FALSE, IF, ELSE, RETURN,
)
from ast_nodes import (
    Node, Program, Statement, Expression,
    VarStatement, ReturnStatement, ExpressionStatement, BlockStatement,
    Identifier, IntegerLiteral, BooleanLiteral, StringLiteral, ArrayLiteral, HashLiteral,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral, CallExpression,
    IndexExpression,
)
from error_handling import FernParseError


# Precedences, lowest to highest
LOWEST = 1
EQUALS = 2       # == !=
LESSGREATER = 3  # < > <= >=
SUM = 4          # + -
PRODUCT = 5      # * /
PREFIX = 6       # -x !x
CALL = 7         # f(x)
INDEX = 8        # a[i]

PRECEDENCES: Dict[str, int] = {
    EQ: EQUALS,
    NEQ: EQUALS,
    LT: LESSGREATER,
    GT: LESSGREATER,
    LTE: LESSGREATER,
    GTE: LESSGREATER,
    PLUS: SUM,
    MINUS: SUM,
    ASTERISK: PRODUCT,
    SLASH: PRODUCT,
    LPAREN: CALL,
    LBRACKET: INDEX,
}

INT64_MAX = 2 ** 63 - 1


class Parser:
    """Pratt parser over a single forward pass of a token stream"""

    def __init__(self, tokens: Iterable[Token], debug: bool = False):
        self.debug = debug
        self.errors: List[str] = []
        self._tokens = iter(tokens)
        self._last_line = 1
        self._block_depth = 0
        self._error_at_peek = False

        self.prefix_parse_fns: Dict[str, Callable[[], Optional[Expression]]] = {
            IDENT: self.parse_identifier,
            INT: self.parse_integer_literal,
            STRING: self.parse_string_literal,
            TRUE: self.parse_boolean,
            FALSE: self.parse_boolean,
            BANG: self.parse_prefix_expression,
            MINUS: self.parse_prefix_expression,
            LPAREN: self.parse_grouped_expression,
            IF: self.parse_if_expression,
            FUNCTION: self.parse_function_literal,
            LBRACKET: self.parse_array_literal,
            LBRACE: self.parse_hash_literal,
            ILLEGAL: self.parse_illegal,
        }
        self.infix_parse_fns: Dict[str, Callable[[Expression], Optional[Expression]]] = {
            op: self.parse_infix_expression
            for op in (PLUS, MINUS, ASTERISK, SLASH, EQ, NEQ, LT, GT, LTE, GTE)
        }
        self.infix_parse_fns[LPAREN] = self.parse_call_expression
        self.infix_parse_fns[LBRACKET] = self.parse_index_expression

        self.cur_token: Token = self._pull()
        self.peek_token: Token = self._pull()

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def _pull(self) -> Token:
        token = next(self._tokens, None)
        if token is None:
            # The stream is exhausted: keep answering EOF
            return Token(EOF, "", self._last_line)
        self._last_line = token.line
        return token

    def next_token(self):
        self.cur_token = self.peek_token
        self.peek_token = self._pull()

    def cur_token_is(self, kind: str) -> bool:
        return self.cur_token.kind == kind

    def peek_token_is(self, kind: str) -> bool:
        return self.peek_token.kind == kind

    def expect_peek(self, kind: str) -> bool:
        """Advance if the next token is of kind, record an error otherwise"""
        if self.peek_token_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek_token.kind, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur_token.kind, LOWEST)

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def error(self, line: int, message: str):
        self.errors.append(f"line {line}: {message}")
        self._error_at_peek = False

    def peek_error(self, kind: str):
        if self.peek_token_is(ILLEGAL):
            self.error(self.peek_token.line, self.peek_token.literal)
            self._error_at_peek = True
            return
        self.error(
            self.peek_token.line,
            f"expected next token to be {kind}, got {self.peek_token.kind} instead")
        self._error_at_peek = True

    def no_prefix_parse_fn_error(self, token: Token):
        self.error(token.line, f"no prefix parse function for {token.kind} found")

    def synchronize(self):
        """Skip the rest of a malformed statement.

        Stops after the next `;`, on the `}` closing the block being parsed, or at
        end of input; braces opened while skipping are matched and skipped whole.
        """
        if self._error_at_peek:
            # The current token was accepted; the offending one is next
            self._error_at_peek = False
            self.next_token()

        nesting = 0
        while not self.cur_token_is(EOF):
            if self.cur_token_is(SEMICOLON) and nesting == 0:
                self.next_token()
                return
            if self.cur_token_is(LBRACE):
                nesting += 1
            elif self.cur_token_is(RBRACE):
                if nesting > 0:
                    nesting -= 1
                elif self._block_depth > 0:
                    return
            self.next_token()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_program(self) -> Program:
        statements = self._parse_statements(until=EOF)
        return Program(statements)

    def _parse_statements(self, until: str) -> List[Statement]:
        statements: List[Statement] = []
        while not self.cur_token_is(until) and not self.cur_token_is(EOF):
            statement = self.parse_statement()
            if statement is None:
                self.synchronize()
                continue
            statements.append(statement)
            self.next_token()
        return statements

    def parse_statement(self) -> Optional[Statement]:
        if self.debug:
            print(f"Parsing statement: {self.cur_token}")

        if self.cur_token.kind in (VAR, CONST):
            return self.parse_var_statement()
        if self.cur_token_is(RETURN):
            return self.parse_return_statement()
        return self.parse_expression_statement()

    def parse_var_statement(self) -> Optional[VarStatement]:
        token = self.cur_token

        if not self.expect_peek(IDENT):
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)

        if not self.expect_peek(ASSIGN):
            return None

        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None

        if not self.expect_peek(SEMICOLON):
            return None

        return VarStatement(token, name, value)

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self.cur_token

        if self.peek_token_is(SEMICOLON):
            self.next_token()
            return ReturnStatement(token)

        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None

        if not self.expect_peek(SEMICOLON):
            return None

        return ReturnStatement(token, value)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.cur_token
        expression = self.parse_expression(LOWEST)
        if expression is None:
            return None

        # Semicolon is optional
        if self.peek_token_is(SEMICOLON):
            self.next_token()

        return ExpressionStatement(token, expression)

    def parse_block_statement(self) -> Optional[BlockStatement]:
        token = self.cur_token
        self.next_token()

        self._block_depth += 1
        try:
            statements = self._parse_statements(until=RBRACE)
        finally:
            self._block_depth -= 1

        if not self.cur_token_is(RBRACE):
            self.error(self.cur_token.line,
                       f"expected next token to be {RBRACE}, got {self.cur_token.kind} instead")
            return None

        return BlockStatement(token, statements)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self, precedence: int) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.kind)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token)
            return None
        left = prefix()

        while (left is not None
               and not self.peek_token_is(SEMICOLON)
               and precedence < self.peek_precedence()):
            infix = self.infix_parse_fns.get(self.peek_token.kind)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)

        return left

    def parse_illegal(self) -> None:
        self.error(self.cur_token.line, self.cur_token.literal)
        return None

    def parse_identifier(self) -> Expression:
        return Identifier(self.cur_token, self.cur_token.literal)

    def parse_integer_literal(self) -> Optional[Expression]:
        value = int(self.cur_token.literal)
        if value > INT64_MAX:
            self.error(self.cur_token.line, f'could not parse "{self.cur_token.literal}" as integer')
            return None
        return IntegerLiteral(self.cur_token, value)

    def parse_string_literal(self) -> Expression:
        return StringLiteral(self.cur_token, self.cur_token.literal)

    def parse_boolean(self) -> Expression:
        return BooleanLiteral(self.cur_token, self.cur_token_is(TRUE))

    def parse_prefix_expression(self) -> Optional[Expression]:
        token = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(token, token.literal, right)

    def parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(token, left, token.literal, right)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.next_token()
        expression = self.parse_expression(LOWEST)
        if expression is None:
            return None
        if not self.expect_peek(RPAREN):
            return None
        return expression

    def parse_if_expression(self) -> Optional[Expression]:
        token = self.cur_token

        if not self.expect_peek(LPAREN):
            return None
        self.next_token()
        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        if not self.expect_peek(RPAREN):
            return None

        if not self.expect_peek(LBRACE):
            return None
        consequence = self.parse_block_statement()
        if consequence is None:
            return None

        alternative = None
        if self.peek_token_is(ELSE):
            self.next_token()
            if not self.expect_peek(LBRACE):
                return None
            alternative = self.parse_block_statement()
            if alternative is None:
                return None

        return IfExpression(token, condition, consequence, alternative)

    def parse_function_literal(self) -> Optional[Expression]:
        token = self.cur_token

        if not self.expect_peek(LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None

        if not self.expect_peek(LBRACE):
            return None
        body = self.parse_block_statement()
        if body is None:
            return None

        return FunctionLiteral(token, parameters, body)

    def parse_function_parameters(self) -> Optional[List[Identifier]]:
        identifiers: List[Identifier] = []

        if self.peek_token_is(RPAREN):
            self.next_token()
            return identifiers

        if not self.expect_peek(IDENT):
            return None
        identifiers.append(Identifier(self.cur_token, self.cur_token.literal))

        while self.peek_token_is(COMMA):
            self.next_token()
            if not self.expect_peek(IDENT):
                return None
            identifiers.append(Identifier(self.cur_token, self.cur_token.literal))

        if not self.expect_peek(RPAREN):
            return None

        return identifiers

    def parse_call_expression(self, function: Expression) -> Optional[Expression]:
        token = self.cur_token
        arguments = self.parse_expression_list(RPAREN)
        if arguments is None:
            return None
        return CallExpression(token, function, arguments)

    def parse_index_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        self.next_token()
        index = self.parse_expression(LOWEST)
        if index is None:
            return None
        if not self.expect_peek(RBRACKET):
            return None
        return IndexExpression(token, left, index)

    def parse_array_literal(self) -> Optional[Expression]:
        token = self.cur_token
        elements = self.parse_expression_list(RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(token, elements)

    def parse_expression_list(self, end: str) -> Optional[List[Expression]]:
        """Comma-separated expressions up to the closing token end"""
        expressions: List[Expression] = []

        if self.peek_token_is(end):
            self.next_token()
            return expressions

        self.next_token()
        expression = self.parse_expression(LOWEST)
        if expression is None:
            return None
        expressions.append(expression)

        while self.peek_token_is(COMMA):
            self.next_token()
            self.next_token()
            expression = self.parse_expression(LOWEST)
            if expression is None:
                return None
            expressions.append(expression)

        if not self.expect_peek(end):
            return None

        return expressions

    def parse_hash_literal(self) -> Optional[Expression]:
        token = self.cur_token
        pairs: List[Tuple[Expression, Expression]] = []

        while not self.peek_token_is(RBRACE):
            self.next_token()
            key = self.parse_expression(LOWEST)
            if key is None:
                return None

            if not self.expect_peek(COLON):
                return None

            self.next_token()
            value = self.parse_expression(LOWEST)
            if value is None:
                return None
            pairs.append((key, value))

            if not self.peek_token_is(RBRACE) and not self.expect_peek(COMMA):
                return None

        self.next_token()
        return HashLiteral(token, pairs)


def parse(tokens: Iterable[Token], debug: bool = False) -> Tuple[Program, List[str]]:
    """Parse a token stream into a Program and the ordered list of syntax errors"""
    parser = Parser(tokens, debug)
    program = parser.parse_program()
    return program, parser.errors


class FernParser:
    """Main Fern parser combining tokenizer and Pratt parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.tokenizer = FernTokenizer(debug)

    def parse_file(self, filepath: str) -> Tuple[Program, List[str]]:
        """Parse a Fern source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FernParseError([f"File not found: {filepath}"], filename=filepath)
        except UnicodeDecodeError as e:
            raise FernParseError([f"Cannot decode file {filepath}: {e}"], filename=filepath)
        return self.parse_string(content)

    def parse_string(self, text: str) -> Tuple[Program, List[str]]:
        """Parse Fern source code from string"""
        return parse(self.tokenizer.tokens(text), self.debug)

    def parse_checked(self, text: str, filename: str = "<input>") -> Program:
        """Parse text, raising FernParseError if it has any syntax error"""
        program, errors = self.parse_string(text)
        if errors:
            raise FernParseError(errors, text, filename)
        return program

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Fern source code"""
        return self.tokenizer.tokenize(text)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> FernParser:
    """Create a Fern parser"""
    return FernParser(debug=debug)


def create_debug_parser() -> FernParser:
    """Create a Fern parser with debug enabled"""
    return FernParser(debug=True)


# Utility functions for working with the AST
def _children(node: Node) -> List[Any]:
    if isinstance(node, (Program, BlockStatement)):
        return list(node.statements)
    if isinstance(node, VarStatement):
        return [node.name, node.value]
    if isinstance(node, ReturnStatement):
        return [node.return_value] if node.return_value is not None else []
    if isinstance(node, ExpressionStatement):
        return [node.expression]
    if isinstance(node, ArrayLiteral):
        return list(node.elements)
    if isinstance(node, HashLiteral):
        return [part for pair in node.pairs for part in pair]
    if isinstance(node, PrefixExpression):
        return [node.right]
    if isinstance(node, InfixExpression):
        return [node.left, node.right]
    if isinstance(node, IfExpression):
        children = [node.condition, node.consequence]
        if node.alternative is not None:
            children.append(node.alternative)
        return children
    if isinstance(node, FunctionLiteral):
        return list(node.parameters) + [node.body]
    if isinstance(node, CallExpression):
        return [node.function] + list(node.arguments)
    if isinstance(node, IndexExpression):
        return [node.left, node.index]
    return []


def find_nodes_by_type(root: Node, node_type: type) -> List[Node]:
    """Find all nodes of a specific type in the AST"""
    result = []

    def search(node: Node):
        if isinstance(node, node_type):
            result.append(node)
        for child in _children(node):
            search(child)

    search(root)
    return result


def pretty_print_ast(node: Node, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    result = "  " * indent + type(node).__name__
    if isinstance(node, (InfixExpression, PrefixExpression)):
        result += f"({node.operator!r})"
    elif isinstance(node, (Identifier, IntegerLiteral, BooleanLiteral, StringLiteral)):
        result += f"({node.value!r})"
    elif isinstance(node, VarStatement):
        result += f"({node.token_literal()})"
    result += "\n"

    for child in _children(node):
        result += pretty_print_ast(child, indent + 1)

    return result


if __name__ == "__main__":
    # Example usage
    parser = create_debug_parser()

    program, errors = parser.parse_string("const add = fun(x, y) { x + y; }; add(1, 2 * 3);")
    print(pretty_print_ast(program))
    print(program)

    program, errors = parser.parse_string("const = 5; const y 10;")
    for error in errors:
        print(f"Parse error: {error}")
