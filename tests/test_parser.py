## forthwalk — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from forthwalk import parser
from forthwalk.parser import Parser, ParserState
from forthwalk.types import Operation, Composite, VariableSlot, ConstantPending, VariableGet, VariableSet, \
                            Conditional, LoopUntil, LoopWhile
from forthwalk.errors import ForthParseError, ForthIncompleteParse


def W(name):
    return Operation(Operation.WORD, name)


def test_tokenize_splits_on_any_whitespace():
    tokens = parser.tokenize("1 2\n\t+   dup\r\n")
    assert [str(t) for t in tokens] == ['1', '2', '+', 'dup']
    assert (tokens[2].line, tokens[2].column) == (2, 2)


def test_tokenize_empty_source():
    assert parser.tokenize("") == []
    assert parser.tokenize("   \n ") == []


def test_literals_and_names():
    result = Parser().parse("1 -2 +3 DUP foo 1+")
    assert result.program == [1, -2, 3, W('dup'), W('foo'), W('1+')]


def test_out_of_range_literal_is_a_name():
    result = Parser().parse("9223372036854775807 9223372036854775808")
    assert result.program == [9223372036854775807, W('9223372036854775808')]


def test_word_definition():
    result = Parser().parse(": square dup * ; 5 square")
    assert result.program == [5, W('square')]
    assert result.definitions[W('square')] == Composite([W('dup'), W('*')], 'square')


def test_word_definition_is_case_insensitive():
    result = Parser().parse(": Square DUP * ;")
    assert W('square') in result.definitions


def test_nested_colon_is_rejected():
    with pytest.raises(ForthParseError, match="Unexpected :"):
        Parser().parse(": foo : bar ; ;")


def test_stray_semicolon_is_rejected():
    with pytest.raises(ForthParseError, match="Unexpected ;"):
        Parser().parse("1 2 ;")


def test_variable_declaration():
    result = Parser().parse("variable x")
    assert result.program == []
    assert result.variables == {'x': 0}
    assert result.definitions[Operation(Operation.VARIABLE, 'x')] == VariableSlot('x')


def test_variable_declaration_inside_word_body():
    result = Parser().parse(": setup variable counter ;")
    assert result.variables == {'counter': 0}
    assert result.definitions[W('setup')] == Composite([], 'setup')


def test_variable_access_binds_preceding_token():
    p = Parser()
    result = p.parse("variable x 7 x ! x @")
    set_keys = [e for e in result.program if isinstance(e, Operation) and e.kind == Operation.SET]
    get_keys = [e for e in result.program if isinstance(e, Operation) and e.kind == Operation.GET]
    assert len(set_keys) == 1 and len(get_keys) == 1
    assert result.definitions[set_keys[0]] == VariableSet('x')
    assert result.definitions[get_keys[0]] == VariableGet('x')


def test_variable_access_keys_are_distinct_per_occurrence():
    result = Parser().parse("a @ b @ a @")
    keys = [e for e in result.program if isinstance(e, Operation) and e.kind == Operation.GET]
    assert len(set(keys)) == 3
    assert [result.definitions[k].name for k in keys] == ['a', 'b', 'a']


def test_variable_access_uses_token_from_previous_call():
    p = Parser()
    p.parse("x")
    result = p.parse("@")
    [key] = result.program
    assert result.definitions[key] == VariableGet('x')


def test_variable_access_without_any_preceding_token():
    with pytest.raises(ForthParseError, match="No var name"):
        Parser().parse("@")


def test_constant_declaration_emits_reference():
    result = Parser().parse("42 constant answer")
    key = Operation(Operation.CONSTANT, 'answer')
    assert result.program == [42, key]
    assert result.definitions[key] == ConstantPending('answer')


def test_constant_without_name():
    with pytest.raises(ForthIncompleteParse):
        Parser().parse("42 constant")


def test_if_then():
    result = Parser().parse("1 if 2 then")
    [_, key] = result.program
    assert key.kind == Operation.IF
    assert result.definitions[key] == Conditional([2], None)


def test_if_else_then():
    result = Parser().parse("0 if 1 else 2 then")
    [_, key] = result.program
    assert result.definitions[key] == Conditional([1], [2])


def test_nested_if_in_both_branches():
    result = Parser().parse("if if 1 then else 0 if 2 else 3 then then")
    [outer] = result.program
    conditional = result.definitions[outer]
    [inner_then] = conditional.then
    assert result.definitions[inner_then] == Conditional([1], None)
    [zero, inner_else] = conditional.otherwise
    assert zero == 0
    assert result.definitions[inner_else] == Conditional([2], [3])


def test_same_construct_twice_gets_two_keys():
    result = Parser().parse("1 if 2 then 1 if 2 then")
    keys = [e for e in result.program if isinstance(e, Operation)]
    assert len(keys) == 2 and keys[0] != keys[1]


def test_begin_until():
    result = Parser().parse("begin 1+ dup 3 = until")
    [key] = result.program
    assert key.kind == Operation.UNTIL
    assert result.definitions[key] == LoopUntil([W('1+'), W('dup'), 3, W('=')])


def test_begin_while_repeat():
    result = Parser().parse("begin dup while 1- repeat")
    [key] = result.program
    assert key.kind == Operation.WHILE
    assert result.definitions[key] == LoopWhile([W('dup')], [W('1-')])


def test_until_after_while_is_rejected():
    with pytest.raises(ForthParseError, match="unexpected until"):
        Parser().parse("begin dup while 1- until")


def test_repeat_without_while_is_rejected():
    with pytest.raises(ForthParseError, match="unexpected repeat"):
        Parser().parse("begin 1- repeat")


@pytest.mark.parametrize("word", ["then", "else", "until", "while", "repeat"])
def test_stray_terminator_is_rejected(word):
    with pytest.raises(ForthParseError, match=f"Unexpected {word}"):
        Parser().parse(f"1 {word}")


def test_semicolon_inside_unterminated_if():
    with pytest.raises(ForthParseError, match="Unexpected ;"):
        Parser().parse(": foo 1 if 2 ;")


def test_colon_inside_branch_is_rejected():
    with pytest.raises(ForthParseError, match="Unexpected :"):
        Parser().parse("1 if : foo ; then")


def test_unterminated_if_at_top_level():
    with pytest.raises(ForthIncompleteParse):
        Parser().parse("1 if 2")


def test_unterminated_begin_at_top_level():
    with pytest.raises(ForthIncompleteParse):
        Parser().parse("begin 1")


def test_definition_continues_on_next_call():
    p = Parser()
    first = p.parse("1 2 : add3")
    assert first.program == [1, 2]
    assert first.definitions == {}
    assert p.state == ParserState.WORD_BODY

    second = p.parse("3 + + ;")
    assert p.state == ParserState.NORMAL
    assert second.definitions[W('add3')] == Composite([3, W('+'), W('+')], 'add3')


def test_definition_waiting_for_its_name():
    p = Parser()
    p.parse(":")
    assert p.state == ParserState.WORD_NAME
    result = p.parse("five 5 ;")
    assert result.definitions[W('five')] == Composite([5], 'five')


def test_definition_with_control_flow_across_calls():
    p = Parser()
    p.parse(": sign dup 0< if")
    assert p.state == ParserState.WORD_BODY
    result = p.parse("drop -1 then ;")
    [_, _, key] = result.definitions[W('sign')].program
    assert result.definitions[key] == Conditional([W('drop'), -1], None)


def test_final_parse_rejects_unterminated_definition():
    p = Parser()
    with pytest.raises(ForthIncompleteParse):
        p.parse(": foo 1 2", final=True)
    assert p.state == ParserState.NORMAL


def test_failed_parse_discards_partial_definition():
    p = Parser()
    p.parse(": foo 1 2")
    with pytest.raises(ForthParseError):
        p.parse("variable x then")
    assert p.state == ParserState.NORMAL
    assert p.pending == []

    result = p.parse("3 4")
    assert result.program == [3, 4]
    assert result.definitions == {}


def test_failed_parse_commits_nothing():
    with pytest.raises(ForthParseError):
        Parser().parse(": good 1 ; variable y : bad ; ;")


def test_position_counter_is_monotonic():
    p = Parser()
    first = p.parse("1 if 2 then")
    second = p.parse("1 if 2 then")
    assert set(first.definitions).isdisjoint(second.definitions)
    assert p.position == 8


def test_parse_error_carries_location():
    with pytest.raises(ForthParseError) as info:
        Parser().parse("1 2\n3 ;", filename="<test>")
    exc = info.value
    assert (exc.filename, exc.line, exc.column, exc.token) == ("<test>", 2, 3, ';')


def test_parse_error_context_highlights_token():
    context = parser.format_parse_error_context("<test>", 2, 3, ';', source="1 2\n3 ;\n")
    assert 'File "<test>", line 2' in context
    assert '    2 |' in context
    assert ';' in context


def test_nesting_is_bounded():
    p = Parser(max_depth=5)
    assert len(p.parse("1 " * 5 + "if " * 5 + "then " * 5).program) == 6
    with pytest.raises(ForthParseError, match="Nesting too deep"):
        p.parse("1 " * 6 + "if " * 6 + "then " * 6)
    assert p.nesting == 0 and p.state == ParserState.NORMAL


def test_nesting_beyond_python_recursion_limit():
    p = Parser(max_depth=100_000)
    with pytest.raises(ForthParseError, match="Nesting too deep"):
        p.parse("begin " * 5000 + "0 until " * 5000)
    assert p.parse("1 if 2 then").program[0] == 1


def test_error_on_carried_token_has_no_location():
    p = Parser()
    p.parse(": foo 1\n2")
    with pytest.raises(ForthIncompleteParse) as info:
        p.parse("", final=True)
    assert (info.value.line, info.value.column, info.value.token) == (None, None, '2')


def test_error_on_new_token_keeps_location():
    p = Parser()
    p.parse(": foo 1")
    with pytest.raises(ForthParseError) as info:
        p.parse("2 then")
    assert (info.value.line, info.value.column) == (1, 3)
