## forthwalk — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Callable
from collections import namedtuple
from dataclasses import dataclass, field


# Stack type is a namedtuple to save memory, yet provide tail/head accessors.
class Stack(namedtuple('Stack', ['tail', 'head'])):
    __slots__ = ()
    _nil_singleton = None

    def __new__(cls, tail, head):
        if tail is None and head is None:
            # Only one singleton creation is allowed, and it's the one just below.
            if cls._nil_singleton is None:
                self = super(Stack, cls).__new__(cls, tail, head)
                cls._nil_singleton = self
                return self
            # By convention, all other code should use `nil` explicitly.
            raise ValueError("Use the canonical `nil` instance for empty stacks")
        return super(Stack, cls).__new__(cls, tail, head)

    def __repr__(self):
        if self is nil:
            return "< nil >"

        items = []
        current = self
        while current is not nil:
            items.append(repr(current.head))
            current = current.tail
        return "< " + " ".join(reversed(items)) + " >"

    def __bool__(self):
        raise TypeError("Stack truth value is ambiguous; compare with `is nil` or `is not nil`.")

    def pushed(self, *items):
        """Push items in order of tail (left) to head (right) onto new Stack and return."""
        stack = self
        for it in items:
            stack = Stack(stack, it)
        return stack

    def depth(self) -> int:
        count, current = 0, self
        while current is not nil:
            count, current = count + 1, current.tail
        return count


# All checks for empty stack must be done by comparing to this.
nil = Stack(None, None)


# Cells are signed 64-bit integers; arithmetic wraps around on overflow.
CELL_BITS = 64
CELL_MIN = -2**(CELL_BITS - 1)
CELL_MAX = 2**(CELL_BITS - 1) - 1

# Deepest nesting of word calls and control constructs, when parsing and evaluating.
DEFAULT_MAX_DEPTH = 200

def wrap(x: int) -> int:
    return ((x - CELL_MIN) % 2**CELL_BITS) + CELL_MIN


class Operation(namedtuple('Operation', ['kind', 'name'])):
    """Identifier of a dictionary entry.  Named kinds are keyed by the lower-case name, while
    control constructs and variable accesses are keyed by the token position they were parsed at.
    """
    __slots__ = ()

    WORD = 'word'           # bare reference, resolved by precedence
    VARIABLE = 'variable'
    CONSTANT = 'constant'
    GET = '@'
    SET = '!'
    IF = 'if'
    UNTIL = 'until'
    WHILE = 'while'

    @property
    def is_positional(self) -> bool:
        return isinstance(self.name, int)

    def __repr__(self):
        if self.kind == Operation.WORD:
            return f"{self.name}"
        return f"{self.kind}#{self.name}" if self.is_positional else f"{self.kind}:{self.name}"


## BEHAVIORS
@dataclass(frozen=True)
class Primitive:
    name: str
    fn: Callable                  # Stack -> Stack, never mutates its input
    meta: dict = field(default_factory=dict, compare=False)

@dataclass(frozen=True)
class Composite:
    program: list                 # list[int | Operation]
    name: str | None = None

@dataclass(frozen=True)
class VariableSlot:
    name: str

@dataclass(frozen=True)
class ConstantPending:
    name: str

@dataclass(frozen=True)
class VariableGet:
    name: str

@dataclass(frozen=True)
class VariableSet:
    name: str

@dataclass(frozen=True)
class Conditional:
    then: list
    otherwise: list | None = None

@dataclass(frozen=True)
class LoopUntil:
    body: list

@dataclass(frozen=True)
class LoopWhile:
    head: list
    body: list


Behavior = Primitive | Composite | VariableSlot | ConstantPending | VariableGet | VariableSet \
         | Conditional | LoopUntil | LoopWhile

Expression = int | Operation
