## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from dataclasses import dataclass, field

import lark
from .types import Operation, Composite, VariableSlot, ConstantPending, VariableGet, VariableSet, \
                   Conditional, LoopUntil, LoopWhile, CELL_MIN, CELL_MAX, DEFAULT_MAX_DEPTH
from .errors import ForthParseError, ForthIncompleteParse


GRAMMAR = r"""start: WORD*

WORD: /\S+/

// WHITESPACE
%ignore /\s+/
"""

_LEXER = lark.Lark(GRAMMAR, start='start', parser="lalr", lexer="contextual")

_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


def tokenize(source: str, filename=None) -> list[lark.Token]:
    """Split source text on whitespace, keeping line and column of each token."""
    try:
        tree = _LEXER.parse(source)
    except lark.exceptions.UnexpectedInput as exc:
        def attr(k): return getattr(exc, k, None)
        raise ForthParseError(str(exc), filename=filename, line=attr('line'), column=attr('column'), token='') from None
    return list(tree.children)


def parse_literal(token: str) -> int | None:
    if not _INTEGER_RE.fullmatch(token): return None
    value = int(token)
    # Out of range literals aren't numbers, and later fail to resolve as a name.
    return value if CELL_MIN <= value <= CELL_MAX else None


class ParserState:
    NORMAL = 0
    WORD_NAME = 1
    WORD_BODY = 2


@dataclass
class ParseResult:
    program: list = field(default_factory=list)          # list[int | Operation]
    definitions: dict = field(default_factory=dict)      # Operation -> Behavior
    variables: dict = field(default_factory=dict)        # str -> int

    def merge(self, other: "ParseResult") -> None:
        self.definitions.update(other.definitions)
        self.variables.update(other.variables)


class _TokenStream:
    def __init__(self, tokens: list, previous, position: int, filename, carried: int = 0):
        self.tokens = tokens
        self.carried = carried
        self.index = 0
        self.position = position
        self.filename = filename
        self.prior, self.current = None, previous

    def exhausted(self) -> bool:
        return self.index >= len(self.tokens)

    def peek(self) -> lark.Token:
        return self.tokens[self.index]

    def next(self, expecting: str) -> lark.Token:
        if self.exhausted():
            last = self.tokens[-1] if self.tokens else None
            raise self.error(f"Expected {expecting}, but input ended.", last, incomplete=True)
        token = self.tokens[self.index]
        self.index += 1
        self.position += 1
        self.prior, self.current = self.current, token
        return token

    def error(self, message: str, token, incomplete=False) -> ForthParseError:
        error_class = ForthIncompleteParse if incomplete else ForthParseError
        # Tokens kept over from an earlier chunk point into text that is no longer at hand.
        located = token is not None and not any(token is t for t in self.tokens[:self.carried])
        return error_class(message, filename=self.filename, line=getattr(token, 'line', None) if located else None,
                           column=getattr(token, 'column', None) if located else None,
                           token=str(token) if token is not None else '')


class Parser:
    """Recursive-descent parser that turns program text into expressions, and collects the
    definitions found along the way.  The token position counter, the token preceding the
    current input, and any unterminated `: name ...` definition carry over between calls.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self.nesting = 0
        self.position = 0
        self.state = ParserState.NORMAL
        self.pending: list[lark.Token] = []
        self.previous: lark.Token | None = None

    def parse(self, source: str, filename=None, final: bool = False) -> ParseResult:
        """Parse one chunk of text.  Nothing is returned for a definition still missing its `;`,
        which is kept for the next call unless `final` is set, and any parse error discards that
        unfinished definition as well.
        """
        tokens = self.pending + tokenize(source, filename=filename)
        stream = _TokenStream(tokens, self.previous, self.position, filename, carried=len(self.pending))
        result = ParseResult()

        try:
            state, start = ParserState.NORMAL, len(tokens)
            while not stream.exhausted():
                if stream.peek() == ':':
                    start = stream.index
                    try:
                        self._parse_definition(stream, result)
                    except ForthIncompleteParse:
                        if final: raise
                        state = ParserState.WORD_NAME if len(tokens) - start == 1 else ParserState.WORD_BODY
                        break
                    start = len(tokens)
                else:
                    self._parse_token(stream.next("a word"), stream, result, result.program)
        except ForthParseError:
            self.pending, self.state = [], ParserState.NORMAL
            raise
        except RecursionError:
            self.pending, self.state, self.nesting = [], ParserState.NORMAL, 0
            raise stream.error("Nesting too deep", stream.current) from None
        finally:
            self.position = stream.position

        self.state, self.pending = state, tokens[start:]
        if self.pending:
            self.previous = tokens[start - 1] if start > 0 else self.previous
        elif tokens:
            self.previous = tokens[-1]
        return result

    def _parse_definition(self, stream: _TokenStream, result: ParseResult) -> None:
        stream.next(":")
        name = str(stream.next("a word name")).lower()
        # Collected separately so an unfinished definition leaves nothing behind.
        local = ParseResult()
        body, _ = self._parse_sequence(stream, local, terminators=(';',))
        local.definitions[Operation(Operation.WORD, name)] = Composite(body, name)
        result.merge(local)

    def _parse_sequence(self, stream: _TokenStream, result: ParseResult, terminators: tuple) -> tuple[list, str]:
        if self.nesting >= self.max_depth:
            raise stream.error("Nesting too deep", stream.current)
        self.nesting += 1
        try:
            program = []
            while True:
                token = stream.next(' or '.join(f"`{t}`" for t in terminators))
                if (word := str(token).lower()) in terminators:
                    return program, word
                self._parse_token(token, stream, result, program)
        finally:
            self.nesting -= 1

    def _parse_token(self, token: lark.Token, stream: _TokenStream, result: ParseResult, program: list) -> None:
        word = str(token).lower()
        position = stream.position

        match word:
            case ':':
                raise stream.error("Unexpected :", token)
            case ';':
                raise stream.error("Unexpected ;", token)
            case 'variable':
                name = str(stream.next("a variable name")).lower()
                result.variables[name] = 0
                result.definitions[Operation(Operation.VARIABLE, name)] = VariableSlot(name)
            case 'constant':
                name = str(stream.next("a constant name")).lower()
                key = Operation(Operation.CONSTANT, name)
                result.variables[name] = 0
                result.definitions[key] = ConstantPending(name)
                program.append(key)
            case '@' | '!':
                if stream.prior is None:
                    raise stream.error("No var name", token)
                name = str(stream.prior).lower()
                if word == '@':
                    key, behavior = Operation(Operation.GET, position), VariableGet(name)
                else:
                    key, behavior = Operation(Operation.SET, position), VariableSet(name)
                result.definitions[key] = behavior
                program.append(key)
            case 'if':
                then, terminator = self._parse_sequence(stream, result, terminators=('else', 'then'))
                otherwise = None
                if terminator == 'else':
                    otherwise, _ = self._parse_sequence(stream, result, terminators=('then',))
                key = Operation(Operation.IF, position)
                result.definitions[key] = Conditional(then, otherwise)
                program.append(key)
            case 'begin':
                head, terminator = self._parse_sequence(stream, result, terminators=('until', 'while', 'repeat'))
                if terminator == 'repeat':
                    raise stream.error("unexpected repeat", stream.current)
                if terminator == 'until':
                    key = Operation(Operation.UNTIL, position)
                    result.definitions[key] = LoopUntil(head)
                else:
                    body, terminator = self._parse_sequence(stream, result, terminators=('repeat', 'until'))
                    if terminator == 'until':
                        raise stream.error("unexpected until", stream.current)
                    key = Operation(Operation.WHILE, position)
                    result.definitions[key] = LoopWhile(head, body)
                program.append(key)
            case 'else' | 'then' | 'until' | 'while' | 'repeat':
                raise stream.error(f"Unexpected {word}", token)
            case _:
                if (value := parse_literal(word)) is not None:
                    program.append(value)
                else:
                    program.append(Operation(Operation.WORD, word))


def format_parse_error_context(filename, line, column, token_value, source=None):
    if line is None: return ""
    lines = source.splitlines(keepends=True) if source is not None else open(filename, 'r').readlines()
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    token_value = token_value or ''
    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column is not None and 0 < column <= len(line_content):
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+len(token_value)-1]}\033[0m" +
                    line_content[column+len(token_value)-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
