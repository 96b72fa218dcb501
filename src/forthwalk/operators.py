## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Stack, nil, wrap
from .errors import ForthStackError, ForthIndexError, ForthArithmeticError


def _divisor(x: int) -> int:
    if x == 0: raise ForthArithmeticError("Division by zero")
    return x

def _quot(b: int, a: int) -> int:
    """Division truncated toward zero."""
    q = abs(b) // abs(_divisor(a))
    return wrap(q if (b < 0) == (a < 0) else -q)

def _rem(b: int, a: int) -> int:
    return wrap(b - a * _quot(b, a))

def _index_below(stk: Stack) -> tuple[Stack, int]:
    if stk is nil: raise ForthStackError("Empty stack")
    base, n = stk
    if not 0 <= n < base.depth(): raise ForthIndexError("Not enough values")
    return base, n


## ARITHMETIC
def op_add(b: int, a: int) -> int: return wrap(b + a)
def op_sub(b: int, a: int) -> int: return wrap(b - a)
def op_mul(b: int, a: int) -> int: return wrap(b * a)
def op_div(b: int, a: int) -> int: return _quot(b, a)
def op_mod(b: int, a: int) -> int: return _rem(b, a)
def op_div_mod(b: int, a: int) -> tuple[int, int]: return (_rem(b, a), _quot(b, a))
def op_mul_div(c: int, b: int, a: int) -> int: return _quot(wrap(c * b), a)
def op_mul_div_mod(c: int, b: int, a: int) -> tuple[int, int]:
    product = wrap(c * b)
    return (_rem(product, a), _quot(product, a))
def op_abs(x: int) -> int: return wrap(abs(x))
def op_negate(x: int) -> int: return wrap(-x)
def op_inc(x: int) -> int: return wrap(x + 1)
def op_dec(x: int) -> int: return wrap(x - 1)
def op_add2(x: int) -> int: return wrap(x + 2)
def op_sub2(x: int) -> int: return wrap(x - 2)
def op_double(x: int) -> int: return wrap(x * 2)
def op_halve(x: int) -> int: return _quot(x, 2)
## BOOLEAN LOGIC, where true is 1 and false is 0.
def op_and(b: int, a: int) -> int: return int(b != 0 and a != 0)
def op_or(b: int, a: int) -> int: return int(b != 0 or a != 0)
def op_xor(b: int, a: int) -> int: return int((b != 0) != (a != 0))
def op_not(x: int) -> int: return int(x == 0)
def op_lt(b: int, a: int) -> int: return int(b < a)
def op_eq(b: int, a: int) -> int: return int(b == a)
def op_gt(b: int, a: int) -> int: return int(b > a)
def op_le(b: int, a: int) -> int: return int(b <= a)
def op_ge(b: int, a: int) -> int: return int(b >= a)
def op_ne(b: int, a: int) -> int: return int(b != a)
def op_lt_zero(x: int) -> int: return int(x < 0)
def op_eq_zero(x: int) -> int: return int(x == 0)
def op_gt_zero(x: int) -> int: return int(x > 0)
# STACK OPERATIONS
def op_dup(x: int) -> tuple[int, int]: return (x, x)
def op_drop(_: int) -> None: return None
def op_swap(x1: int, x2: int) -> tuple[int, int]: return (x2, x1)
def op_over(x1: int, x2: int) -> tuple[int, int, int]: return (x1, x2, x1)
def op_rot(x1: int, x2: int, x3: int) -> tuple[int, int, int]: return (x2, x3, x1)
def op_dup2(x1: int, x2: int) -> tuple[int, int, int, int]: return (x1, x2, x1, x2)
def op_drop2(_1: int, _2: int) -> None: return None
def op_swap2(x1: int, x2: int, x3: int, x4: int) -> tuple[int, int, int, int]: return (x3, x4, x1, x2)
def op_over2(x1: int, x2: int, x3: int, x4: int) -> tuple[int, int, int, int, int, int]: return (x1, x2, x3, x4, x1, x2)
def op_depth(s: Stack) -> int: return s.depth()

def op_pick(s: Stack) -> Stack:
    """Copy the item `n` places below the index to the top, so `0 pick` is `dup`."""
    base, n = _index_below(s)
    current = base
    for _ in range(n):
        current = current.tail
    return Stack(base, current.head)

def op_roll(s: Stack) -> Stack:
    """Move the item `n` places below the index to the top, so `1 roll` is `swap`."""
    base, n = _index_below(s)
    above, current = [], base
    for _ in range(n):
        current, head = current
        above.append(head)
    rest, item = current
    return rest.pushed(*reversed(above), item)

# INPUT/OUTPUT
def op_print(x: int) -> None:
    print(x)
