from decimal import Decimal

import pytest

from gcalc import (
    Interpreter, ListVal, Registration, compile_module, run_program, run_statement,
    ArityError, DomainError, MathError, ParseError, RecursionLimitError, ShapeError,
    TypeMismatchError, UndefinedFunctionError, UndefinedVariableError,
)


@pytest.fixture
def interp():
    interpreter = Interpreter()
    yield interpreter
    interpreter.close()


def test_precedence():
    assert run_statement('2+3*4') == 14
    assert run_statement('(2+3)*4') == 20
    assert run_statement('10-4-3') == 3
    assert run_statement('2*3%4') == 2
    assert run_statement('8/4/2') == 1
    assert run_statement('1+2*3-4/2') == 5


def test_decimal_arithmetic():
    assert run_statement('0.1+0.2') == Decimal('0.3')
    assert run_statement('1/4') == Decimal('0.25')


def test_modulo_takes_sign_of_divisor():
    assert run_statement('7%3') == 1
    assert run_statement('-7%3') == 2
    assert run_statement('7%-3') == -2


def test_modulo_is_exact_for_long_operands():
    assert run_statement('1000000000000000000000000000001 % 7') == 2
    assert run_statement('-1000000000000000000000000000001 % 7') == 5
    result = run_statement('5.99999999999999999999999999999 % 3')
    assert result == Decimal('2.99999999999999999999999999999')
    assert result > 0
    assert run_statement('-0.000000000000000000000000000001 % 3') < 3


def test_division_and_modulo_by_zero():
    with pytest.raises(MathError) as exc:
        run_statement('1/0')
    assert exc.value.kind == 'ArithmeticError'
    assert exc.value.offset == 2
    with pytest.raises(MathError):
        run_statement('5%0')
    with pytest.raises(MathError):
        run_statement('[1,2]/[1,0]')


def test_factorial():
    assert run_statement('5!') == 120
    assert run_statement('0!') == 1
    assert run_statement('3!!') == 720
    assert run_statement('25!') == Decimal(15511210043330985984000000)
    with pytest.raises(DomainError):
        run_statement('(-1)!')
    with pytest.raises(DomainError):
        run_statement('2.5!')


def test_factorial_rejects_lists():
    with pytest.raises(TypeMismatchError):
        run_statement('[1,2]!')


def test_piecewise_first_match(interp):
    source = '{x<0:-1,x=0:0,otherwise:1}'
    assert interp.execute(source, {'x': 0}) == 0
    assert interp.execute(source, {'x': -5}) == -1
    assert interp.execute(source, {'x': 3}) == 1
    assert interp.execute('{x>0:1,x>1:2,otherwise:3}', {'x': 5}) == 1


def test_piecewise_only_evaluates_selected_branch():
    assert run_statement('{1=1:1,otherwise:1/0}') == 1
    assert run_statement('{1=2:1/0,otherwise:7}') == 7


def test_piecewise_rejects_list_comparison(interp):
    with pytest.raises(TypeMismatchError):
        interp.execute('{[1,2]<1:1,otherwise:0}')
    interp.execute('g(x) = {x<1:1,otherwise:0}')
    with pytest.raises(TypeMismatchError):
        interp.execute('g([1,2])')


def test_list_arithmetic():
    assert run_statement('[1,2]+[3,4]') == ListVal([Decimal(4), Decimal(6)])
    assert run_statement('[1,2]*3') == ListVal([Decimal(3), Decimal(6)])
    assert run_statement('10-[1,2]') == ListVal([Decimal(9), Decimal(8)])
    assert run_statement('1+[1,2]*2').items == [3, 5]


def test_shape_mismatch():
    with pytest.raises(ShapeError):
        run_statement('[1,2]+[1,2,3]')


def test_elementwise_map(interp):
    assert interp.execute('f(x)=x*2') == Registration('f', 1)
    assert interp.execute('f@([1,2,3])') == ListVal([Decimal(2), Decimal(4), Decimal(6)])
    assert interp.execute('f@(4)') == 8


def test_map_broadcasts_scalars(interp):
    interp.execute('g(a, b) = a + b')
    assert interp.execute('g@([1,2], 10)').items == [11, 12]
    assert interp.execute('g@([1,2], [3,4])').items == [4, 6]
    with pytest.raises(ShapeError):
        interp.execute('g@([1,2], [1,2,3])')


def test_map_over_builtin():
    assert run_statement('abs@([-1,2,-3])').items == [1, 2, 3]


def test_map_results_cannot_be_lists(interp):
    interp.execute('pair(x) = [x, x]')
    with pytest.raises(TypeMismatchError):
        interp.execute('pair@([1,2])')


def test_plain_call_does_not_broadcast(interp):
    interp.execute('f(x: Number) = x')
    with pytest.raises(TypeMismatchError) as exc:
        interp.execute('f([1,2])')
    assert exc.value.param_name == 'x'
    assert exc.value.expected == 'Number'
    assert exc.value.got == 'List'
    assert interp.execute('f@([1,2])').items == [1, 2]


def test_unannotated_parameters_are_checked_per_call(interp):
    interp.execute('k(y: Number) = y')
    interp.execute('h(x) = k(x)')
    assert interp.execute('h(3)') == 3
    with pytest.raises(TypeMismatchError) as exc:
        interp.execute('h([1])')
    assert exc.value.param_name == 'y'


def test_declared_return_type_is_checked(interp):
    interp.execute('f(x): Number = x')
    assert interp.execute('f(2)') == 2
    with pytest.raises(TypeMismatchError):
        interp.execute('f([1,2])')


def test_nested_list_from_function(interp):
    interp.execute('l(x) = [x, x]')
    with pytest.raises(TypeMismatchError):
        interp.execute('[l(1), 2]')


def test_zero_argument_function_as_variable(interp):
    interp.execute('c() = 3')
    assert interp.execute('c*2') == 6
    assert interp.execute('c()') == 3


def test_parameters_shadow_functions(interp):
    interp.execute('x() = 100')
    interp.execute('f(x) = x + 1')
    assert interp.execute('f(1)') == 2
    assert interp.execute('x + 1') == 101


def test_undefined_names(interp):
    with pytest.raises(UndefinedVariableError) as exc:
        interp.execute('y + 1')
    assert exc.value.offset == 0
    with pytest.raises(UndefinedFunctionError):
        interp.execute('q(1)')
    with pytest.raises(ArityError):
        interp.execute('sin(1, 2)')


def test_recursion(interp):
    interp.execute('fact(n) = {n<=1: 1, otherwise: n*fact(n-1)}')
    assert interp.execute('fact(10)') == 3628800
    interp.execute('fib(n) = {n<2: n, otherwise: fib(n-1) + fib(n-2)}')
    assert interp.execute('fib(15)') == 610


def test_recursion_limit():
    interp = Interpreter(max_call_depth=10)
    interp.execute('down(n) = {n<=0: 0, otherwise: down(n-1)}')
    assert interp.execute('down(5)') == 0
    with pytest.raises(RecursionLimitError):
        interp.execute('down(50)')
    # The depth counter is reset after a failure
    assert interp.execute('down(9)') == 0


def test_unbounded_recursion(interp):
    interp.execute('loop(n) = loop(n+1)')
    with pytest.raises(RecursionLimitError):
        interp.execute('loop(0)')


def test_redefinition_overwrites(interp):
    interp.execute('f(x) = x')
    result = interp.execute('f(x) = x + 1')
    assert result.replaced
    assert interp.execute('f(1)') == 2
    interp.execute('f(x, y) = x * y')
    assert interp.execute('f(2, 5)') == 10
    assert interp.execute('f(1)') == 2


def test_reregistering_identical_definition(interp):
    interp.execute('f(x) = x * 2')
    interp.execute('g(x) = x + 1')
    before = interp.env.snapshot()
    assert interp.execute('f(x) = x * 2') == Registration('f', 1, replaced=False)
    assert interp.env.snapshot() == before
    assert interp.execute('f(3)') == 6


def test_evaluation_is_deterministic(interp):
    interp.execute('f(x) = {x>2: x!, otherwise: [x, 1]}')
    first = interp.execute('f(4) + f@([3,4,5])')
    second = interp.execute('f(4) + f@([3,4,5])')
    assert first == second == ListVal([Decimal(30), Decimal(48), Decimal(144)])


def test_failed_definitions_are_not_registered(interp):
    for source in ('f(x) = x +', 'f(x) = x + y', 'f(x): List = 1', 'f(x: Matrix) = x',
                   'f(x) = q(x)', 'f(x) = [x, [1]]'):
        with pytest.raises((ParseError, TypeMismatchError, UndefinedVariableError,
                            UndefinedFunctionError)):
            interp.execute(source)
    assert interp.env.snapshot() == ()
    with pytest.raises(UndefinedFunctionError):
        interp.execute('f(1)')


def test_bindings_accept_host_values(interp):
    assert interp.execute('total(xs) * k', {'xs': [1, 2, 3], 'k': 0.5}) == 3
    assert interp.execute('x + 1', {'x': Decimal('1.5')}) == Decimal('2.5')
    assert interp.execute('x * 2', {'x': '0.25'}) == Decimal('0.5')


def test_bindings_reject_non_numbers(interp):
    with pytest.raises(TypeError):
        interp.execute('x + 1', {'x': 'abc'})
    with pytest.raises(TypeError):
        interp.execute('total(xs)', {'xs': ['1', 'nan']})
    with pytest.raises(TypeError):
        interp.execute('x + 1', {'x': True})
    with pytest.raises(TypeError):
        interp.execute('x + 1', {'x': float('inf')})


def test_definitions_ignore_host_bindings(interp):
    with pytest.raises(UndefinedVariableError):
        interp.execute('f(x) = x + y', {'y': 1})


def test_snapshot_and_restore(interp):
    interp.execute('sq(x) = x*x')
    interp.execute('quad(x) = sq(sq(x))')
    sources = interp.snapshot()
    assert sources == ('sq(x) = x*x', 'quad(x) = sq(sq(x))')
    fresh = Interpreter()
    registrations = fresh.restore(sources)
    assert [str(r) for r in registrations] == ['defined sq/1', 'defined quad/1']
    assert fresh.execute('quad(2)') == 16


def test_sessions_are_independent():
    one = Interpreter()
    two = Interpreter()
    one.execute('f(x) = x')
    with pytest.raises(UndefinedFunctionError):
        two.execute('f(1)')


def test_run_program():
    results = run_program('f(x) = x + 1\n\nf(1)\nf@([1,2])\n')
    assert results == [Registration('f', 1), 2, ListVal([Decimal(2), Decimal(3)])]


def test_compile_module(tmp_path):
    module = tmp_path / 'shapes.calc'
    module.write_text('area(r) = 3 * r * r\nperimeter(r) = 6 * r\n', encoding='utf-8')
    interp = compile_module(str(module))
    assert interp.snapshot() == ('area(r) = 3 * r * r', 'perimeter(r) = 6 * r')
    assert interp.execute('area(2) + perimeter(1)') == 18


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=3, debug_file=str(debug_file))
    interp.execute('f(x) = {x<0: 0, otherwise: x}')
    interp.execute('f@([-1, 2])')
    with pytest.raises(MathError):
        interp.execute('1/0')
    interp.close()
    trace = debug_file.read_text()
    assert 'define function f/1' in trace
    assert 'map f over 2 element(s)' in trace
    assert 'otherwise taken' in trace
    assert 'call f(2)' in trace
    assert "'1/0' -> ArithmeticError: division by zero" in trace
