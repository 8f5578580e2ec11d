"""
Error handling for the Tiny interpreter with detailed error messages
Fatal errors are exceptions; formatting helpers are pure functions
"""

from typing import Any, Dict, List, Optional
from pyparsing import ParseException


# Forms accepted inside an if/while block
NESTED_FORMS = [
    "let <ident> = <int>;",
    "<ident> = <ident> + <int>;",
    "<ident>(<int or ident>, ...);",
]


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    line: int,
    column: int,
    filename: str = "<input>",
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'filename': filename,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got'] is not None:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:  # Error line
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def describe_got(text: str) -> str:
    """Describe the offending text for an error message"""
    if not text:
        return "empty line"
    return f"'{text}'"


def generate_suggestions(text: str) -> List[str]:
    """Generate helpful suggestions for a line that failed to parse"""
    suggestions = []

    if not text:
        suggestions.append("Blank lines are not allowed inside an if/while block")
        return suggestions

    if text.startswith("if ") or text.startswith("while "):
        suggestions.append("if/while blocks cannot be nested inside another block")

    if text.startswith("}") and "else" in text:
        suggestions.append("'} else {' is only valid as the end of an if block's true branch")

    if text.endswith("();"):
        suggestions.append("Calls need at least one argument, e.g. print(0);")

    if not text.endswith(";") and not text.endswith("{") and not text.startswith("}"):
        suggestions.append("Statements must end with ';'")

    if "+=" in text or "-=" in text:
        suggestions.append("Updates are written 'x = x + <int>;' (use a negative literal to subtract)")

    return suggestions


def enhance_parse_exception_dict(exc: ParseException, source_text: str, line_num: int,
                                 col_offset: int = 0, filename: str = "<input>",
                                 statement_text: str = "") -> Dict:
    """Convert a pyparsing exception raised on a single line to a Tiny error dict

    pyparsing only ever sees one trimmed line, so the exception's own column is
    relative to that text; col_offset shifts it back into the source line.
    """
    col_num = exc.column + col_offset
    text = exc.pstr.strip()

    return make_parse_error(
        message=f"Invalid call argument '{text}'" if text else "Missing call argument",
        line=line_num,
        column=col_num,
        filename=filename,
        expected=["<int> (optional '-' followed by digits)", "<ident>"],
        got=f"'{text}'" if text else "nothing",
        context=get_context_lines(source_text, line_num, col_num),
        suggestions=generate_suggestions(statement_text or text)
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class TinyError(Exception):
    """Base class for every fatal, run-aborting Tiny error"""


class TinyParseError(TinyError):
    """Fatal error raised while parsing Tiny source"""
    def __init__(self, message: str, line: int = 0, column: int = 0,
                 filename: str = "<input>", expected: Optional[List[str]] = None,
                 got: Optional[str] = None, context: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        super().__init__(message)

    @classmethod
    def from_dict(cls, error: Dict) -> 'TinyParseError':
        return cls(
            message=error['message'],
            line=error['line'],
            column=error['column'],
            filename=error['filename'],
            expected=error['expected'],
            got=error['got'],
            context=error['context'],
            suggestions=error['suggestions']
        )

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.line, self.column, self.filename,
            self.expected, self.got, self.context, self.suggestions
        )
        return format_parse_error(error_dict)


class TinyRuntimeError(TinyError):
    """Fatal error raised while evaluating a Tiny program"""
    def __init__(self, message: str, span: Any = None, source_line: Optional[str] = None,
                 env_snapshot: Optional[Dict[str, int]] = None):
        self.message = message
        self.span = span
        self.source_line = source_line
        self.env_snapshot = env_snapshot
        super().__init__(message)

    def with_location(self, span: Any, env: Dict[str, int]) -> 'TinyRuntimeError':
        """Attach the failing statement's location and an environment snapshot"""
        if self.span is None and span is not None:
            self.span = span
            self.source_line = span.text
        if self.env_snapshot is None:
            self.env_snapshot = dict(env)
        return self

    def __str__(self) -> str:
        if self.span:
            return f"Runtime error at {self.span}: {self.message}"
        return f"Runtime error: {self.message}"


def parse_error_at(source_text: str, message: str, line_num: int, raw_line: str,
                   filename: str = "<input>", expected: Optional[List[str]] = None) -> TinyParseError:
    """Build a TinyParseError for a whole source line"""
    text = raw_line.strip()
    col_num = len(raw_line) - len(raw_line.lstrip()) + 1
    return TinyParseError.from_dict(make_parse_error(
        message=message,
        line=line_num,
        column=col_num,
        filename=filename,
        expected=expected,
        got=describe_got(text),
        context=get_context_lines(source_text, line_num, col_num),
        suggestions=generate_suggestions(text)
    ))
