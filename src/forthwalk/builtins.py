## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from . import operators
from .loader import get_forth_name
from .dictionary import Dictionary


def load_builtins_dictionary():
    aliases = {
        '+': 'add', '-': 'sub', '*': 'mul', '/': 'div',
        '/mod': 'div-mod', '*/': 'mul-div', '*/mod': 'mul-div-mod',
        '1+': 'inc', '1-': 'dec', '2+': 'add2', '2-': 'sub2', '2*': 'double', '2/': 'halve',
        '<': 'lt', '=': 'eq', '>': 'gt', '<=': 'le', '>=': 'ge', '<>': 'ne',
        '0<': 'lt-zero', '0=': 'eq-zero', '0>': 'gt-zero', 'invert': 'not',
        '2dup': 'dup2', '2drop': 'drop2', '2swap': 'swap2', '2over': 'over2',
        '.': 'print',
    }

    words = Dictionary(primitives={}, aliases=aliases)

    # Primitives (wrapped via Dictionary helper)
    for k in dir(operators):
        if not k.startswith('op_'): continue
        words.add_primitive(get_forth_name(k), getattr(operators, k))

    words.ensure_consistent()
    return words
