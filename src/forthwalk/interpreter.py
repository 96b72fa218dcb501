## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Stack, nil, Operation, Composite, Primitive, VariableSlot, ConstantPending, \
                   VariableGet, VariableSet, Conditional, LoopUntil, LoopWhile
from .errors import ForthError, ForthStackError, ForthNameError, ForthRuntimeError, ForthRecursionError
from .formatting import show_program_and_stack


def _pop_flag(stack: Stack, op: Operation) -> tuple[Stack, int]:
    if stack is nil:
        raise ForthStackError("Empty stack", forth_op=op, forth_token=repr(op), forth_stack=stack)
    return stack.tail, stack.head


def evaluate(expr, stack: Stack, session, depth: int = 0) -> Stack:
    """Evaluate a single expression against the stack, returning the new stack."""
    if not isinstance(expr, Operation):
        return Stack(stack, expr)

    match session.dictionary.resolve(expr):
        case Primitive(fn=fn):
            return fn(stack)

        case Composite(program=program):
            return interpret(program, stack, session, depth + 1)

        case VariableSlot():
            return stack

        case ConstantPending(name=name):
            if stack is nil:
                raise ForthStackError("No constant value", forth_op=expr, forth_token=name)
            tail, value = stack
            session.dictionary.define(Operation(Operation.CONSTANT, name), Composite([value], name))
            session.variables[name] = value
            return tail

        case VariableGet(name=name):
            if name not in session.variables:
                raise ForthNameError(f"Undefined variable {name}", forth_op=expr, forth_token=name)
            return Stack(stack, session.variables[name])

        case VariableSet(name=name):
            if session.dictionary.is_defined(Operation.CONSTANT, name):
                raise ForthRuntimeError(f"Cannot reset constant {name}", forth_op=expr, forth_token=name)
            if not session.dictionary.is_defined(Operation.VARIABLE, name):
                raise ForthNameError(f"Undefined variable {name}", forth_op=expr, forth_token=name)
            if stack is nil:
                raise ForthStackError("Empty stack", forth_op=expr, forth_token=name)
            tail, value = stack
            session.variables[name] = value
            return tail

        case Conditional(then=then, otherwise=otherwise):
            stack, flag = _pop_flag(stack, expr)
            if flag != 0:
                return interpret(then, stack, session, depth + 1)
            if otherwise is not None:
                return interpret(otherwise, stack, session, depth + 1)
            return stack

        case LoopUntil(body=body):
            while True:
                stack = interpret(body, stack, session, depth + 1)
                stack, flag = _pop_flag(stack, expr)
                if flag != 0:
                    return stack

        case LoopWhile(head=head, body=body):
            while True:
                stack = interpret(head, stack, session, depth + 1)
                stack, flag = _pop_flag(stack, expr)
                if flag == 0:
                    return stack
                stack = interpret(body, stack, session, depth + 1)

        case _:
            raise NotImplementedError


def interpret(program: list, stack: Stack | None, session, depth: int = 0) -> Stack:
    """Run expressions in order.  On failure, the error carries the stack as it was just before the
    innermost failing expression, in `forth_stack`.
    """
    stack = nil if stack is None else stack
    verbosity = session.verbosity

    if depth > session.max_depth:
        raise ForthRecursionError("Recursion too deep", forth_stack=stack)

    def is_notable(expr):
        if not isinstance(expr, Operation): return False
        return expr.is_positional or Operation(Operation.WORD, expr.name) in session.dictionary.entries

    for step, expr in enumerate(program):
        if verbosity == 2 or (verbosity == 1 and is_notable(expr)):
            print(f"\033[90m{depth:>3} :\033[0m  ", end='')
            show_program_and_stack(program[step:], stack)

        try:
            stack = evaluate(expr, stack, session, depth)
        except ForthError as exc:
            if exc.forth_stack is None:
                exc.forth_stack = stack
            if exc.forth_op is None:
                exc.forth_op, exc.forth_token = expr, repr(expr)
            raise

        if session.stats is not None:
            session.stats['steps'] = session.stats.get('steps', 0) + 1

    return stack
