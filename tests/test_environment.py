import pytest

from gcalc.builtin_function import BuiltinFunction, UserFunction
from gcalc.environment import Environment
from gcalc.errors import ArityError, UndefinedFunctionError
from gcalc.parser import parse_statement
from gcalc.std import standard_builtins


def user(source):
    stmt = parse_statement(source)
    return UserFunction(stmt.definition, stmt.body, source)


def test_builtin_lookup():
    env = Environment(standard_builtins())
    func = env.lookup('sqrt', 1)
    assert isinstance(func, BuiltinFunction)
    assert repr(func) == '<builtin sqrt/1>'
    assert env.arities('max') == (1, 2)


def test_lookup_errors():
    env = Environment(standard_builtins())
    with pytest.raises(UndefinedFunctionError) as exc:
        env.lookup('nope', 2, offset=5)
    assert exc.value.name == 'nope'
    assert exc.value.arity == 2
    assert exc.value.offset == 5
    with pytest.raises(ArityError) as exc:
        env.lookup('sqrt', 3)
    assert 'Expected 1 arguments but got 3' in exc.value.message


def test_register_and_overwrite():
    env = Environment()
    assert env.register(user('f(x) = x')) is False
    assert env.register(user('f(x) = x + 1')) is True
    assert env.register(user('f(x, y) = x')) is False
    assert env.lookup('f', 1).body == parse_statement('f(x) = x + 1').body


def test_user_definitions_shadow_builtins():
    env = Environment(standard_builtins())
    env.register(user('sin(x) = x * 2'))
    assert isinstance(env.lookup('sin', 1), UserFunction)
    assert isinstance(env.lookup('cos', 1), BuiltinFunction)


def test_snapshot_order():
    env = Environment(standard_builtins())
    env.register(user('a(x) = x'))
    env.register(user('b(x) = a(x)'))
    assert env.register(user('a(x) = x')) is False
    assert [f.name for f in env.snapshot()] == ['a', 'b']
    # A changed definition moves behind everything registered before it
    env.register(user('a(x) = b(x) + 1'))
    assert [f.name for f in env.snapshot()] == ['b', 'a']
    assert all(not isinstance(f, BuiltinFunction) for f in env.snapshot())


def test_identical_registration_keeps_original():
    env = Environment()
    original = user('f(x) = x*2')
    env.register(original)
    assert env.register(user('f(x)  =  x * 2')) is False
    assert env.lookup('f', 1) is original
    assert env.snapshot()[0].source == 'f(x) = x*2'
