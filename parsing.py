"""
Tiny Programming Language Parser
Line-oriented parser producing Statement trees with source spans
"""

from typing import Iterator, List, Optional, Tuple, Type, Union
from dataclasses import dataclass, field
import sys

# Import pyparsing with error handling
try:
    from pyparsing import (
        Keyword, Literal, ParseException, ParseResults, ParserElement,
        Regex, Suppress, one_of
    )
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from error_handling import (
    NESTED_FORMS, TinyParseError, enhance_parse_exception_dict, parse_error_at
)
from utilities import fits_int64


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a statement's first line"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


# ============================================================================
# STATEMENTS
# ============================================================================

# Call arguments: integer literals, or variable names resolved when the call runs
Argument = Union[int, str]


@dataclass(frozen=True)
class VarAssign:
    """let <var> = <value>;"""
    var: str
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class VarUpdate:
    """<var> = <var> + <value>;"""
    var: str
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IfCondition:
    """if <var> == <value> { ... } else { ... }"""
    var: str
    value: int
    true_branch: Tuple['Statement', ...] = ()
    false_branch: Tuple['Statement', ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'true_branch', tuple(self.true_branch))
        object.__setattr__(self, 'false_branch', tuple(self.false_branch))


@dataclass(frozen=True)
class WhileLoop:
    """while <var> <op> <value> { ... }"""
    var: str
    op: str
    value: int
    body: Tuple['Statement', ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'body', tuple(self.body))


@dataclass(frozen=True)
class FunctionCall:
    """<name>(<arg>, ...); where each arg is an integer or a variable name"""
    name: str
    args: Tuple[Argument, ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))


Statement = Union[VarAssign, VarUpdate, IfCondition, WhileLoop, FunctionCall]


# ============================================================================
# GRAMMAR
# ============================================================================

class TinyGrammar:
    """Tiny line grammar definition using pyparsing

    Every element matches one whole trimmed line. Whitespace is significant:
    separators are exactly one space and tabs are never expanded.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the per-line statement and delimiter forms"""
        space = Suppress(Literal(" "))
        identifier = Regex(r"\w+")
        integer = Regex(r"-?[0-9]+")
        comparison = one_of("== != < > <= >=")

        # let x = 10;
        self.assign = self._line(
            Keyword("let") + space + identifier("var") + space + Suppress("=") + space +
            integer("value") + Suppress(";")
        )

        # x = x + 5;
        self.update = self._line(
            identifier("var") + space + Suppress("=") + space + identifier("source") + space +
            Suppress("+") + space + integer("value") + Suppress(";")
        )

        # if x == 15 {
        self.if_open = self._line(
            Keyword("if") + space + identifier("var") + space + Suppress("==") + space +
            integer("value") + space + Suppress("{")
        )

        # while x < 5 {
        self.while_open = self._line(
            Keyword("while") + space + identifier("var") + space + comparison("op") + space +
            integer("value") + space + Suppress("{")
        )

        # print(1, 2, 3);  -- argument text is split and checked separately
        self.function_call = self._line(
            identifier("name") + Suppress("(") + Regex(r"[^)]*")("args") + Suppress(");")
        )

        self.else_line = self._line(Literal("}") + space + Keyword("else") + space + Literal("{"))
        self.block_close = self._line(Literal("}"))
        # A call argument is an integer literal or a variable name
        self.argument = self._line(Regex(r"-?[0-9]+(?!\w)")("int") | identifier("name"))

    @staticmethod
    def _line(expr: ParserElement) -> ParserElement:
        return expr.leave_whitespace().parse_with_tabs()

    def match(self, element: ParserElement, line: str) -> Optional[ParseResults]:
        """Match a trimmed line against one grammar element"""
        try:
            return element.parse_string(line, parse_all=True)
        except ParseException:
            return None

    def is_else(self, line: str) -> bool:
        return self.match(self.else_line, line) is not None

    def is_block_close(self, line: str) -> bool:
        return self.match(self.block_close, line) is not None


# ============================================================================
# PARSER
# ============================================================================

class TinyParser:
    """Recursive-descent parser over the source lines of a Tiny program"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = TinyGrammar(debug)

    def parse_file(self, filepath: str) -> List[Statement]:
        """Parse a Tiny source file"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Statement]:
        """Parse Tiny source code from string"""
        lines = text.split('\n')
        # a final newline ends the last line, it does not start a new one
        if lines and lines[-1] == '':
            lines.pop()
        statements = []

        i = 0
        while i < len(lines):
            statement, i = self._parse_top_level(text, lines, i, filename)
            if statement is not None:
                statements.append(statement)
            i += 1

        if self.debug:
            print(f"Parsed {len(statements)} top-level statements from {filename}", file=sys.stderr)
        return statements

    def parse_statement(self, line: str, line_num: int = 1, source: Optional[str] = None,
                        filename: str = "<input>") -> Statement:
        """Parse one line in nested (block body) position

        Only declarations, updates and calls are accepted; anything else is fatal.
        """
        if source is None:
            source = line
        statement = self._parse_simple(line, line_num, source, filename)
        if statement is None:
            raise parse_error_at(source, "Invalid statement inside block", line_num, line,
                                 filename, expected=NESTED_FORMS)
        return statement

    # ------------------------------------------------------------------
    # line dispatch
    # ------------------------------------------------------------------

    def _parse_top_level(self, source: str, lines: List[str], i: int,
                         filename: str) -> Tuple[Optional[Statement], int]:
        """Parse the statement starting at line i; returns it and the last line consumed"""
        raw_line = lines[i]
        line = raw_line.strip()
        line_num = i + 1

        statement = self._parse_simple(raw_line, line_num, source, filename)
        if statement is not None:
            return statement, i

        result = self.grammar.match(self.grammar.if_open, line)
        if result is not None:
            return self._parse_if(result, source, lines, i, filename)

        result = self.grammar.match(self.grammar.while_open, line)
        if result is not None:
            return self._parse_while(result, source, lines, i, filename)

        if self.debug and line:
            print(f"Ignoring line {line_num}: {line}", file=sys.stderr)
        return None, i

    def _parse_simple(self, raw_line: str, line_num: int, source: str,
                      filename: str) -> Optional[Statement]:
        """Try the three single-line forms shared by top level and block bodies"""
        line = raw_line.strip()
        span = self._span(raw_line, line_num, filename)

        result = self.grammar.match(self.grammar.assign, line)
        if result is not None:
            value = self._to_int(result['value'], source, line_num, raw_line, filename)
            return self._trace(VarAssign(result['var'], value, span=span))

        result = self.grammar.match(self.grammar.update, line)
        if result is not None:
            value = self._to_int(result['value'], source, line_num, raw_line, filename)
            return self._trace(VarUpdate(result['var'], value, span=span))

        result = self.grammar.match(self.grammar.function_call, line)
        if result is not None:
            args = self._parse_args(result['name'], result.get('args', ''), source, line_num, raw_line, filename)
            return self._trace(FunctionCall(result['name'], args, span=span))

        return None

    # ------------------------------------------------------------------
    # blocks
    # ------------------------------------------------------------------

    def _parse_if(self, result: ParseResults, source: str, lines: List[str], i: int,
                  filename: str) -> Tuple[IfCondition, int]:
        span = self._span(lines[i], i + 1, filename)
        value = self._to_int(result['value'], source, i + 1, lines[i], filename)

        true_branch, i = self._parse_block(source, lines, i + 1, filename, stop_at_else=True)
        false_branch = []
        if i < len(lines) and self.grammar.is_else(lines[i].strip()):
            false_branch, i = self._parse_block(source, lines, i + 1, filename, stop_at_else=False)

        return self._trace(IfCondition(result['var'], value, true_branch, false_branch, span=span)), i

    def _parse_while(self, result: ParseResults, source: str, lines: List[str], i: int,
                     filename: str) -> Tuple[WhileLoop, int]:
        span = self._span(lines[i], i + 1, filename)
        value = self._to_int(result['value'], source, i + 1, lines[i], filename)

        body, i = self._parse_block(source, lines, i + 1, filename, stop_at_else=False)

        return self._trace(WhileLoop(result['var'], result['op'], value, body, span=span)), i

    def _parse_block(self, source: str, lines: List[str], i: int, filename: str,
                     stop_at_else: bool) -> Tuple[List[Statement], int]:
        """Collect nested statements from line i up to the closing delimiter

        Returns the statements and the index of the delimiter line (or the
        line count when the block runs to end of input).
        """
        statements = []
        while i < len(lines):
            line = lines[i].strip()
            if self.grammar.is_block_close(line):
                break
            if stop_at_else and self.grammar.is_else(line):
                break
            statements.append(self.parse_statement(lines[i], i + 1, source, filename))
            i += 1
        return statements, i

    # ------------------------------------------------------------------
    # literals
    # ------------------------------------------------------------------

    def _to_int(self, text: str, source: str, line_num: int, raw_line: str, filename: str) -> int:
        value = int(text)
        if not fits_int64(value):
            raise parse_error_at(source, f"Integer literal {text} does not fit in 64 bits",
                                 line_num, raw_line, filename)
        return value

    def _parse_args(self, name: str, args_text: str, source: str, line_num: int,
                    raw_line: str, filename: str) -> List[Argument]:
        """Split a call's argument text on commas; each piece is an integer or a variable name"""
        indent = len(raw_line) - len(raw_line.lstrip())
        base = indent + len(name) + 1

        args = []
        pos = 0
        for piece in args_text.split(','):
            token = piece.strip()
            offset = base + pos + (len(piece) - len(piece.lstrip()))
            try:
                result = self.grammar.argument.parse_string(token, parse_all=True)
            except ParseException as e:
                error = enhance_parse_exception_dict(e, source, line_num, offset, filename,
                                                     statement_text=raw_line.strip())
                raise TinyParseError.from_dict(error) from e
            if 'int' in result:
                args.append(self._to_int(token, source, line_num, raw_line, filename))
            else:
                args.append(token)
            pos += len(piece) + 1
        return args

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _span(raw_line: str, line_num: int, filename: str) -> SourceSpan:
        text = raw_line.strip()
        start_col = len(raw_line) - len(raw_line.lstrip()) + 1
        return SourceSpan(filename, line_num, start_col, line_num, start_col + len(text), text)

    def _trace(self, statement: Statement) -> Statement:
        if self.debug:
            print(f"Parsed {statement.span}: {describe_statement(statement)}", file=sys.stderr)
        return statement


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> TinyParser:
    """Create a Tiny parser"""
    return TinyParser(debug=debug)


def create_debug_parser() -> TinyParser:
    """Create a Tiny parser with debug enabled"""
    return TinyParser(debug=True)


# ============================================================================
# TREE UTILITIES
# ============================================================================

def child_blocks(statement: Statement) -> List[Tuple[str, Tuple[Statement, ...]]]:
    """Labelled nested bodies of a statement"""
    if isinstance(statement, IfCondition):
        blocks = [("then", statement.true_branch)]
        if statement.false_branch:
            blocks.append(("else", statement.false_branch))
        return blocks
    if isinstance(statement, WhileLoop):
        return [("do", statement.body)]
    return []


def walk_statements(statements) -> Iterator[Statement]:
    """Yield every statement depth-first, in source order"""
    for statement in statements:
        yield statement
        for _, block in child_blocks(statement):
            yield from walk_statements(block)


def find_statements_by_type(statements, statement_type: Type) -> List[Statement]:
    """Find all statements of a specific type in a tree"""
    return [s for s in walk_statements(statements) if isinstance(s, statement_type)]


def describe_statement(statement: Statement) -> str:
    """One-line description of a statement, without its nested bodies"""
    if isinstance(statement, VarAssign):
        return f"VarAssign({statement.var} = {statement.value})"
    if isinstance(statement, VarUpdate):
        return f"VarUpdate({statement.var} += {statement.value})"
    if isinstance(statement, IfCondition):
        return f"IfCondition({statement.var} == {statement.value})"
    if isinstance(statement, WhileLoop):
        return f"WhileLoop({statement.var} {statement.op} {statement.value})"
    if isinstance(statement, FunctionCall):
        args = ", ".join(str(arg) for arg in statement.args)
        return f"FunctionCall({statement.name}({args}))"
    raise TypeError(f"Not a Tiny statement: {statement!r}")


def pretty_print_statement(statement: Statement, indent: int = 0) -> str:
    """Pretty print a statement tree for debugging"""
    result = "  " * indent + describe_statement(statement) + "\n"

    for label, block in child_blocks(statement):
        result += "  " * (indent + 1) + f"{label}:\n"
        for child in block:
            result += pretty_print_statement(child, indent + 2)

    return result
