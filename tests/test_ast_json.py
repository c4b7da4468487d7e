import json

import pytest

from gcalc.ast import BinaryChain, Call, FuncDefStmt, NumberLiteral, Piecewise
from gcalc.ast_json import ast_from_obj, ast_to_obj, ast_to_source
from gcalc.interpreter import Interpreter
from gcalc.parser import parse_statement
from gcalc.types import TypeSpec


def reload(source):
    return ast_from_obj(json.loads(json.dumps(ast_to_obj(parse_statement(source)))))


def test_definition_survives_json():
    stmt = reload('area(r: Number): Number = 3.14159 * r * r')
    assert isinstance(stmt, FuncDefStmt)
    assert stmt == parse_statement('area(r: Number): Number = 3.14159 * r * r')
    assert stmt.definition.params[0].type_spec == TypeSpec('Number')
    assert stmt.definition.return_type == TypeSpec('Number')
    assert isinstance(stmt.body, BinaryChain)


def test_numbers_are_stored_exactly():
    obj = ast_to_obj(parse_statement('0.10'))
    assert obj == {'type': 'NumberLiteral', 'value': '0.10', 'offset': 0}
    assert ast_from_obj(obj) == NumberLiteral(parse_statement('0.10').value)


def test_offsets_are_kept():
    stmt = reload('1 + {x<0: 1, otherwise: f@([1, 2])}')
    piecewise = stmt.rest[0][1]
    assert isinstance(piecewise, Piecewise)
    assert piecewise.offset == 4
    call = piecewise.otherwise
    assert isinstance(call, Call) and call.mapped
    assert call.offset == 24


def test_reloaded_tree_runs():
    interp = Interpreter()
    interp.run(reload('f(x) = x * 2'))
    assert interp.run(reload('f@([1, 2]) + 1')).items == [3, 5]


def test_unknown_nodes_are_rejected():
    with pytest.raises(ValueError):
        ast_from_obj({'type': 'Matrix'})
    with pytest.raises(TypeError):
        ast_to_obj(object())


@pytest.mark.parametrize('source', [
    'f(x: Number, y): List = [x, y] * 2',
    'c() = 3',
    '(1+2)*3!',
    '(-1)!',
    '2--3',
    '0.10 + 1',
    '{x<0: -1, x>=1: g@([1, 2], x), otherwise: (x+1)!}',
])
def test_rendered_source_parses_to_the_same_tree(source):
    stmt = parse_statement(source)
    assert parse_statement(ast_to_source(stmt)) == stmt


def test_rendered_source_layout():
    assert ast_to_source(parse_statement('f(x:List)=(x+1)*2')) == 'f(x: List) = (x + 1) * 2'


def test_definitions_from_json_are_kept_in_snapshot():
    interp = Interpreter()
    interp.run(reload('double(x: Number) = x*2'))
    assert interp.snapshot() == ('double(x: Number) = x * 2',)
    fresh = Interpreter()
    fresh.restore(interp.snapshot())
    assert fresh.execute('double(4)') == 8
