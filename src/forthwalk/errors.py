## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class ForthError(Exception):
    def __init__(self, message: str = "", *, forth_op=None, forth_token=None, forth_stack=None):
        """Base class for all Forth-raised errors."""
        super().__init__(message)
        self.forth_op: object = forth_op
        self.forth_token: str = forth_token
        self.forth_stack = forth_stack

class ForthParseError(ForthError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, forth_token=token)
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class ForthIncompleteParse(ForthParseError, lark.exceptions.ParseError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, filename=filename, line=line, column=column, token=token)

class ForthNameError(ForthError, NameError):
    pass

class ForthRuntimeError(ForthError, RuntimeError):
    pass

class ForthRecursionError(ForthRuntimeError, RecursionError):
    pass


class ForthStackError(ForthError, IndexError):
    """Stack underflow, found when an operation needs more items than available."""
    pass

class ForthIndexError(ForthError, IndexError):
    """Out of range index for `pick` and `roll`."""
    pass

class ForthArithmeticError(ForthError, ArithmeticError):
    pass


class ForthTypeMissing(ForthError, TypeError):
    """Loading-time problems from primitive functions declared on the Python-side."""
    pass
