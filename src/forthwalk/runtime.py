## forthwalk — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Callable

from .types import Stack, nil, wrap, DEFAULT_MAX_DEPTH
from .errors import ForthError, ForthNameError, ForthRecursionError
from .parser import Parser, ParserState
from .dictionary import Dictionary
from .builtins import load_builtins_dictionary
from .formatting import list_to_stack, stack_to_list
from .interpreter import interpret


class Runtime:
    """Interpreter session, owning the dictionary, the variable store and the data stack.  All of
    them persist from one call of `evaluate` to the next.
    """

    def __init__(self, dictionary: Dictionary | None = None, max_depth: int = DEFAULT_MAX_DEPTH,
                 verbosity: int = 0, stats: dict | None = None):
        self.dictionary = dictionary or load_builtins_dictionary()
        self.parser = Parser(max_depth=max_depth)
        self.variables: dict[str, int] = {}
        self.data: Stack = nil

        self.max_depth = max_depth
        self.verbosity = verbosity
        self.stats = stats

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def evaluate(self, source: str, filename: str | None = None, final: bool = False) -> None:
        """Parse and run one chunk of program text.  Definitions are committed only once the whole
        chunk parsed; on a runtime error the stack is left as it was before the failing expression.
        With `final`, a definition left without its `;` is a parse error instead of waiting for more.
        """
        result = self.parser.parse(source, filename=filename, final=final)
        self.dictionary.update(result.definitions)
        self.variables.update(result.variables)

        try:
            self.data = interpret(result.program, self.data, self)
        except ForthError as exc:
            if exc.forth_stack is not None:
                self.data = exc.forth_stack
            raise
        except RecursionError:
            # A `max_depth` set beyond what Python's own call stack allows.
            raise ForthRecursionError("Recursion too deep") from None

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_operation(self, name: str, func: Callable) -> None:
        """Add a primitive written in Python, its annotations giving the stack effect."""
        self.dictionary.add_primitive(name.lower(), func)

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def get_signature(self, name: str) -> dict:
        primitive = self.dictionary.get_primitive(name.lower())
        if primitive is None:
            raise ForthNameError(f"Not implemented {name}", forth_token=name)
        return primitive.meta

    def list_operations(self) -> dict[str, dict]:
        return {n: p.meta for n, p in self.dictionary.primitives.items()}

    def to_stack(self, values: list) -> Stack:
        return list_to_stack(values)

    def from_stack(self, stack: Stack) -> list:
        return stack_to_list(stack)

    @property
    def stack(self) -> list[int]:
        """Current stack content, from bottom to top."""
        return stack_to_list(self.data)

    @stack.setter
    def stack(self, values: list[int]) -> None:
        self.data = list_to_stack([wrap(int(v)) for v in values])

    @property
    def pending(self) -> bool:
        """True while a `: name ...` definition is waiting for more input."""
        return self.parser.state != ParserState.NORMAL
