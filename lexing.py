"""
Fern Lexer
Token definitions and a pyparsing-driven scanner producing a lazy token stream
"""

from typing import Dict, Iterator, List
from dataclasses import dataclass, replace

try:
    from pyparsing import (
        MatchFirst, ParserElement, Regex, Word, alphas, nums, one_of
    )
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")


# Token kinds
ILLEGAL = "ILLEGAL"
EOF = "EOF"

IDENT = "IDENT"
INT = "INT"
STRING = "STRING"

ASSIGN = "="
PLUS = "+"
MINUS = "-"
BANG = "!"
ASTERISK = "*"
SLASH = "/"

LT = "<"
GT = ">"
LTE = "<="
GTE = ">="
EQ = "=="
NEQ = "!="

COMMA = ","
SEMICOLON = ";"
COLON = ":"

LPAREN = "("
RPAREN = ")"
LBRACE = "{"
RBRACE = "}"
LBRACKET = "["
RBRACKET = "]"

FUNCTION = "FUNCTION"
CONST = "CONST"
VAR = "VAR"
TRUE = "TRUE"
FALSE = "FALSE"
IF = "IF"
ELSE = "ELSE"
RETURN = "RETURN"

# Internal marker, never yielded
COMMENT = "COMMENT"


KEYWORDS: Dict[str, str] = {
    "fun": FUNCTION,
    "const": CONST,
    "var": VAR,
    "true": TRUE,
    "false": FALSE,
    "if": IF,
    "else": ELSE,
    "return": RETURN,
}

OPERATORS: Dict[str, str] = {
    op: op for op in (
        ASSIGN, PLUS, MINUS, BANG, ASTERISK, SLASH, LT, GT, LTE, GTE, EQ, NEQ,
        COMMA, SEMICOLON, COLON, LPAREN, RPAREN, LBRACE, RBRACE, LBRACKET, RBRACKET,
    )
}


@dataclass(frozen=True)
class Token:
    """Fern token: kind, literal text and source line"""
    kind: str
    literal: str
    line: int

    def __str__(self) -> str:
        return f"{self.kind}({self.literal!r}) @ line {self.line}"


def lookup_ident(ident: str) -> str:
    """Keyword kind for ident, IDENT otherwise"""
    return KEYWORDS.get(ident, IDENT)


class FernTokenizer:
    """Scanner for Fern source text built from pyparsing elements"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns for Fern.

        Parse actions build tokens without a line; tokens() fills it in from a
        running line count so the text is scanned for newlines only once.
        """

        def tagged(kind):
            return lambda toks: Token(kind, toks[0], 0)

        def illegal(message):
            return lambda toks: Token(ILLEGAL, message, 0)

        # Comments. A block comment ends at the first */ (no nesting)
        line_comment = Regex(r"//[^\r\n]*").set_parse_action(tagged(COMMENT))
        block_comment = Regex(r"/\*[\s\S]*?\*/").set_parse_action(tagged(COMMENT))
        open_comment = Regex(r"/\*[\s\S]*").set_parse_action(illegal("comment not terminated"))

        # Strings have no escape sequences and may span lines
        string = Regex(r'"[^"]*"').set_parse_action(
            lambda toks: Token(STRING, toks[0][1:-1], 0))
        open_string = Regex(r'"[^"]*').set_parse_action(illegal("string literal not terminated"))

        # Identifiers are letters and underscores only; keywords are looked up afterwards
        word = Word(alphas + "_").set_parse_action(
            lambda toks: Token(lookup_ident(toks[0]), toks[0], 0))
        integer = Word(nums).set_parse_action(tagged(INT))

        # one_of picks the longest operator first (== before =)
        operator = one_of(list(OPERATORS)).set_parse_action(
            lambda toks: Token(OPERATORS[toks[0]], toks[0], 0))

        self.lexeme: ParserElement = MatchFirst([
            line_comment, block_comment, open_comment,
            string, open_string,
            word, integer, operator,
        ]).parse_with_tabs()

    def tokens(self, text: str) -> Iterator[Token]:
        """Lazily yield the tokens of text, ending with a single EOF token"""
        lines = LineCounter(text)
        position = 0
        for toks, start, end in self.lexeme.scan_string(text):
            yield from self._illegal_characters(text, position, start, lines)
            position = end

            token = toks[0]
            if token.kind == COMMENT:
                continue
            token = replace(token, line=lines.line_at(start))
            if self.debug:
                print(f"Token: {token}")
            yield token

        yield from self._illegal_characters(text, position, len(text), lines)
        yield Token(EOF, "", lines.line_at(len(text)))

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Fern source code into a list"""
        return list(self.tokens(text))

    def _illegal_characters(self, text: str, start: int, end: int,
                            lines: "LineCounter") -> Iterator[Token]:
        # Anything the scanner skipped over that is not whitespace is illegal
        for loc in range(start, end):
            char = text[loc]
            if not char.isspace():
                yield Token(ILLEGAL, f"illegal character: {char!r}", lines.line_at(loc))


class LineCounter:
    """Line numbers for ascending offsets into one text, counting each newline once"""

    def __init__(self, text: str):
        self.text = text
        self.line = 1
        self.offset = 0

    def line_at(self, loc: int) -> int:
        if loc < self.offset:
            raise ValueError(f"offset {loc} is behind {self.offset}")
        self.line += self.text.count("\n", self.offset, loc)
        self.offset = loc
        return self.line


def tokenize(text: str, debug: bool = False) -> Iterator[Token]:
    """Token stream for text"""
    return FernTokenizer(debug).tokens(text)

