"""
Error reporting for Fern at the host boundary
Syntax errors arrive from the parser as `line N: ...` messages and runtime errors
as ERROR objects; this module turns both into readable reports
"""

from typing import List, Optional, Dict
import re


LINE_PREFIX = re.compile(r"^line (\d+): ")


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    line: int,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'line': line,
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error at line {error['line']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += f"  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def extract_line_number(message: str) -> Optional[int]:
    """Line number of a `line N: ...` parser message"""
    match = LINE_PREFIX.match(message)
    if match:
        return int(match.group(1))
    return None


def strip_line_prefix(message: str) -> str:
    return LINE_PREFIX.sub("", message, count=1)


def extract_got(message: str) -> Optional[str]:
    """The offending token kind named in an `expected ..., got X instead` message"""
    match = re.search(r"got (\S+) instead", message)
    if match:
        return match.group(1)
    return None


def get_context_lines(source_text: str, line_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error, marking the error line"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        marker = ">" if i == line_num - 1 else " "
        context_parts.append(f"  {marker}{i+1:4d}: {lines[i]}")

    return '\n'.join(context_parts)


def generate_suggestions(message: str) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if "expected next token to be ;" in message:
        suggestions.append("Bindings and return statements end with ';'")

    if "expected next token to be =" in message:
        suggestions.append("Bind a name with 'const name = value;'")

    if "expected next token to be IDENT" in message:
        suggestions.append("Names are made of letters and '_' only")

    if "no prefix parse function for = " in message:
        suggestions.append("Use '==' to compare values; '=' only appears in bindings")

    if "expected next token to be }" in message:
        suggestions.append("Check that every '{' has a matching '}'")

    if "string literal not terminated" in message:
        suggestions.append("Close the string with '\"'")

    if "comment not terminated" in message:
        suggestions.append("Close the block comment with '*/'; comments do not nest")

    if "as integer" in message:
        suggestions.append("Integers must fit in a signed 64-bit range")

    return suggestions


def enhance_parse_error(message: str, source_text: str) -> Dict:
    """Convert a parser message to an enhanced error dict"""
    line_num = extract_line_number(message) or 1
    context = get_context_lines(source_text, line_num) if source_text else None

    return make_parse_error(
        message=strip_line_prefix(message),
        line=line_num,
        got=extract_got(message),
        context=context,
        suggestions=generate_suggestions(message)
    )


def format_parse_errors(errors: List[str], source_text: str = "") -> str:
    """Format every parser message, in order"""
    return "\n".join(
        format_parse_error(enhance_parse_error(message, source_text)) for message in errors)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FernParseError(Exception):
    """A program that must not be evaluated: syntax errors, or unreadable source"""
    def __init__(self, errors: List[str], source_text: str = "", filename: str = "<input>"):
        self.errors = list(errors)
        self.source_text = source_text
        self.filename = filename
        super().__init__("; ".join(self.errors))

    def __str__(self) -> str:
        header = f"{len(self.errors)} syntax error(s) in {self.filename}\n"
        return header + format_parse_errors(self.errors, self.source_text)


class FernRuntimeError(Exception):
    """An ERROR object surfaced to the host"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
