## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable
from dataclasses import dataclass, field

from .types import Stack, nil, Operation, Primitive, Behavior
from .errors import ForthNameError, ForthStackError
from .loader import get_stack_effects


# Order in which bindings are searched when resolving a bare name.
NAME_PRECEDENCE = (Operation.CONSTANT, Operation.VARIABLE, Operation.WORD)


@dataclass
class Dictionary:
    primitives: dict[str, Primitive]
    aliases: dict[str, str] = field(default_factory=dict)
    entries: dict[Operation, Behavior] = field(default_factory=dict)

    # Registration helpers
    def add_primitive(self, name: str, fn: Callable[..., Any]) -> None:
        wrapper, meta = _make_wrapper(fn, name)
        self.primitives[name] = Primitive(name, wrapper, meta)

    def define(self, key: Operation, behavior: Behavior) -> None:
        self.entries[key] = behavior

    def update(self, definitions: dict[Operation, Behavior]) -> None:
        self.entries.update(definitions)

    def ensure_consistent(self) -> None:
        for alias, target in self.aliases.items():
            assert target in self.primitives, f"Alias `{alias}` refers to unknown primitive `{target}`."

    # Lookup helpers
    def get_primitive(self, name: str) -> Primitive | None:
        return self.primitives.get(self.aliases.get(name, name))

    def is_defined(self, kind: str, name: str) -> bool:
        return Operation(kind, name) in self.entries

    def resolve(self, op: Operation) -> Behavior:
        if op.kind == Operation.WORD:
            for kind in NAME_PRECEDENCE:
                if (behavior := self.entries.get(Operation(kind, op.name))) is not None:
                    return behavior
            if (primitive := self.get_primitive(op.name)) is not None:
                return primitive
        elif (behavior := self.entries.get(op)) is not None:
            return behavior
        raise ForthNameError(f"Not implemented {op!r}", forth_op=op, forth_token=str(op.name))


def _make_wrapper(fn: Callable[..., Any], name: str) -> tuple[Callable[[Stack], Stack], dict]:
    """Adapt a Python function into a `Stack -> Stack` primitive.  The input stack is never modified,
    so a primitive that fails part-way leaves all of its operands in place.
    """
    meta = get_stack_effects(fn=fn, name=name)

    match meta['valency']:
        case -1:
            def push(_, res): return res
        case 0:
            def push(base, _): return base
        case 1:
            def push(base, res): return Stack(base, res)
        case _:
            def push(base, res):
                for v in res: base = Stack(base, v)
                return base

    match meta['arity']:
        case -2: # pass stack as-is
            def w_s(stk: Stack):
                return push(stk, fn(stk))
            return w_s, meta
        case 0: # no arguments
            def w_0(stk: Stack):
                return push(stk, fn())
            return w_0, meta
        case 1:
            def w_1(stk: Stack):
                if stk is nil: raise ForthStackError("Empty stack")
                base, a = stk
                return push(base, fn(a))
            return w_1, meta
        case 2:
            def w_2(stk: Stack):
                if stk is nil or stk.tail is nil: raise ForthStackError("Empty stack")
                (base, b), a = stk
                return push(base, fn(b, a))
            return w_2, meta
        case _:
            def w_x(stk: Stack):
                args, base = (), stk
                for _ in range(meta['arity']):
                    if base is nil: raise ForthStackError("Empty stack")
                    base, h = base
                    args = (h,) + args
                return push(base, fn(*args))
            return w_x, meta
