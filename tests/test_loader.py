## forthwalk — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from forthwalk.types import Stack
from forthwalk.errors import ForthTypeMissing
from forthwalk.loader import get_stack_effects, get_forth_name


def test_name_mapping():
    assert get_forth_name('op_lt_zero') == 'lt-zero'
    assert get_forth_name('op_dup2') == 'dup2'
    assert get_forth_name('op_div_mod') == 'div-mod'
    assert get_forth_name('op_even_q') == 'even?'


def test_name_mapping_requires_prefix():
    with pytest.raises(ForthTypeMissing):
        get_forth_name('dup')


def test_effects_of_binary_function():
    def add(b: int, a: int) -> int: return b + a
    assert get_stack_effects(fn=add) == {'arity': 2, 'valency': 1}


def test_effects_of_multiple_outputs():
    def split(x: int) -> tuple[int, int, int]: return (x, x, x)
    assert get_stack_effects(fn=split) == {'arity': 1, 'valency': 3}


def test_effects_of_no_output():
    def drop(x: int) -> None: return None
    assert get_stack_effects(fn=drop) == {'arity': 1, 'valency': 0}


def test_effects_of_whole_stack_functions():
    def whole(s: Stack) -> Stack: return s
    def count(s: Stack) -> int: return 0
    assert get_stack_effects(fn=whole) == {'arity': -2, 'valency': -1}
    assert get_stack_effects(fn=count) == {'arity': -2, 'valency': 1}


def test_effects_with_string_annotations():
    def whole(s: 'Stack') -> 'Stack': return s
    assert get_stack_effects(fn=whole) == {'arity': -2, 'valency': -1}


def test_missing_return_annotation():
    def f(x: int): return x
    with pytest.raises(ForthTypeMissing, match="return annotation"):
        get_stack_effects(fn=f, name='f')


def test_missing_parameter_annotation():
    def f(x, y: int) -> int: return x
    with pytest.raises(ForthTypeMissing, match="annotate parameters: x"):
        get_stack_effects(fn=f, name='f')


def test_variadic_functions_are_rejected():
    def f(*xs: int) -> int: return 0
    with pytest.raises(ForthTypeMissing, match="variadic"):
        get_stack_effects(fn=f)
