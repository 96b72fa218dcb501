## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import inspect
from typing import Any, Callable, ForwardRef, get_origin, get_args

from .types import Stack
from .errors import ForthTypeMissing


def get_forth_name(py_name: str) -> str:
    """Map an `op_*` function name to its Forth primitive name."""
    if not py_name.startswith("op_"):
        raise ForthTypeMissing(f"Operator function `{py_name}` requires prefix `op_` by convention.", forth_token=py_name)
    return py_name[3:].replace('_q', '?').replace('_', '-')


def _is_stack_annotation(annotation: Any) -> bool:
    if isinstance(annotation, ForwardRef) or hasattr(annotation, '__forward_arg__'):
        annotation = annotation.__forward_arg__
    if annotation is Stack:
        return True
    if isinstance(annotation, str):
        return annotation == 'Stack' or annotation.endswith('.Stack')
    return False


def get_stack_effects(*, fn: Callable, name: str = None) -> dict:
    """Parse the type annotations from Python to determine the stack effects in Forth.

    Arity (input) conventions:
        -2: pass entire stack as-is to function
        >=0: pop that many items from the stack

    Valency (output) conventions:
        -1: replace stack with retval
        0: no changes to stack
        1: single output expected
        >=1: tuple of multiple outputs expected
    """
    assert fn is not None, "Must specify the function to inspect."

    sig = inspect.signature(fn)
    params = list(sig.parameters.values())
    op_name = name or getattr(fn, '__name__', '<unnamed>')

    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        raise ForthTypeMissing(f"Operation `{op_name}` has a fixed arity, variadic `*args` are not supported.")
    positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)]

    ret_ann = sig.return_annotation
    if ret_ann is inspect.Signature.empty:
        raise ForthTypeMissing(f"Operation `{op_name}` must declare a return annotation.")

    missing_inputs = [p.name for p in positional if p.annotation is inspect.Parameter.empty]
    if missing_inputs:
        missing = ', '.join(missing_inputs)
        raise ForthTypeMissing(f"Operation `{op_name}` must annotate parameters: {missing}.")

    returns_none = (ret_ann is type(None) or ret_ann is None)
    returns_tuple = (ret_ann is tuple or get_origin(ret_ann) is tuple)

    # Special cases when stack be passed in directly and restored directly.
    pass_stack = (len(positional) == 1 and _is_stack_annotation(positional[0].annotation))
    replace_stack = _is_stack_annotation(ret_ann)

    if returns_none or replace_stack:
        valency = -1 if replace_stack else 0
    else:
        valency = len(get_args(ret_ann)) if returns_tuple else 1

    return {
        'arity': -2 if pass_stack else len(positional),
        'valency': valency,
    }
