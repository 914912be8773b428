import sys

import pytest

from glint.errors import GlintRuntimeError, ParseError
from glint.interpreter import Interpreter, run_program
from glint.types import to_string


def run(source: str, **kwargs):
    out = []
    Interpreter(output=out.append, **kwargs).interpret(source)
    return out


def runtime_error(source: str, **kwargs) -> GlintRuntimeError:
    with pytest.raises(GlintRuntimeError) as excinfo:
        run(source, **kwargs)
    return excinfo.value


@pytest.mark.parametrize('literal, printed', [
    ('3', '3'),
    ('31.4', '31.4'),
    ('0', '0'),
    ('0.5', '0.5'),
    ('100.000', '100'),
    ('123456789', '123456789'),
    ('10000000000000000', '1e+16'),
    ('100000000000000000000', '1e+20'),
    ('-0', '-0'),
])
def test_numeric_literals_print_canonically(literal, printed):
    assert run(f'print {literal};') == [printed]


def test_value_printing():
    source = '''
    print "raw text";
    print true;
    print false;
    print null;
    fn f() {}
    print f;
    class C {}
    print C;
    print C();
    print clock;
    '''
    assert run(source) == [
        'raw text', 'true', 'false', 'null', '<fn f>', '<class C>', 'C instance', '<native fn clock>',
    ]


def test_let_then_print():
    assert run('let n = "v"; print n;') == ['v']


def test_assign_undeclared_is_undefined_variable():
    err = runtime_error('n = 2;')
    assert err.kind == 'UndefinedVariable'
    assert err.line == 1


def test_read_undeclared_is_undefined_variable():
    err = runtime_error('print 1;\nprint missing;')
    assert err.kind == 'UndefinedVariable'
    assert err.line == 2


def test_assignment_in_block_updates_enclosing():
    assert run('let a = 1; { a = 2; } print a;') == ['2']


def test_print_assignment_rebinds():
    assert run('let name = 1; print name = 5; print name;') == ['5', '5']


def test_closure_counter_advances():
    source = '''
    fn makeCounter() {
      let i = 0;
      fn count() { i = i + 1; return i; }
      return count;
    }
    let c = makeCounter();
    print c();
    print c();
    print c();
    '''
    assert run(source) == ['1', '2', '3']


def test_closures_share_captured_environment():
    source = '''
    let get;
    let set;
    {
      let value = "a";
      fn g() { return value; }
      fn s(v) { value = v; }
      get = g;
      set = s;
    }
    set("b");
    print get();
    '''
    assert run(source) == ['b']


def test_closure_sees_later_mutation_of_captured_variable():
    source = '''
    let x = "before";
    fn show() { print x; }
    x = "after";
    show();
    '''
    assert run(source) == ['after']


def test_short_circuit_skips_side_effects():
    source = '''
    fn sideEffect() { print "called"; return true; }
    print false and sideEffect();
    print true or sideEffect();
    '''
    assert run(source) == ['false', 'true']


def test_logical_operators_return_operands():
    assert run('print "a" or "b"; print null and "b"; print false or null;') == ['a', 'null', 'null']


def test_super_method_resolution():
    source = '''
    class A { greet() { return "A"; } }
    class B < A { greet() { return super.greet() + "B"; } }
    print B().greet();
    '''
    assert run(source) == ['AB']


def test_super_starts_at_declaring_class_superclass():
    source = '''
    class A { name() { return "A"; } }
    class B < A { name() { return "B" + super.name(); } }
    class C < B { name() { return "C" + super.name(); } }
    print C().name();
    '''
    assert run(source) == ['CBA']


def test_self_is_bound_per_receiver():
    source = '''
    class Box {
      init(v) { self.v = v; }
      get() { return self.v; }
    }
    let a = Box(1);
    let b = Box(2);
    let getter = a.get;
    b.get = getter;
    print b.get();
    print getter();
    '''
    assert run(source) == ['1', '1']


def test_instances_alias():
    source = '''
    class P {}
    let a = P();
    let b = a;
    b.x = "shared";
    print a.x;
    print a == b;
    print P() == P();
    '''
    assert run(source) == ['shared', 'true', 'false']


def test_constructor_returns_instance_regardless_of_init_return():
    source = '''
    class A {
      init() { self.ok = true; return; }
    }
    let a = A();
    print a.ok;
    print a.init() == a;
    '''
    assert run(source) == ['true', 'true']


def test_inherited_init_arity():
    source = '''
    class A { init(x) { self.x = x; } }
    class B < A {}
    print B(4).x;
    '''
    assert run(source) == ['4']
    err = runtime_error('class A { init(x) {} } class B < A {} B();')
    assert err.kind == 'ArityError'


def test_fields_shadow_methods():
    source = '''
    class A { m() { return "method"; } }
    let a = A();
    print a.m();
    a.m = "field";
    print a.m;
    '''
    assert run(source) == ['method', 'field']


def test_division_by_zero():
    err = runtime_error('print 1 / 0;')
    assert err.kind == 'DivisionByZero'


def test_arity_mismatch():
    for call in ('f();', 'f(1, 2);'):
        err = runtime_error('fn f(a) { return a; }\n' + call)
        assert err.kind == 'ArityError'
        assert err.line == 2
    assert runtime_error('clock(1);').kind == 'ArityError'
    assert runtime_error('class C {} C(1);').kind == 'ArityError'


def test_unbounded_recursion_is_stack_overflow():
    err = runtime_error('fn f() { f(); }\nf();')
    assert err.kind == 'StackOverflow'


def test_stack_overflow_respects_max_call_depth():
    source = 'fn down(n) { if (n > 0) return down(n - 1); return "done"; } print down(20);'
    assert run(source) == ['done']
    assert runtime_error(source, max_call_depth=10).kind == 'StackOverflow'


DEEP_COUNT = '''
fn count(n) {
  if (n > 0) {
    let r = count(n - 1);
    return r + 1;
  }
  return 0;
}
'''


def test_recursion_up_to_max_call_depth_succeeds():
    # count(n) makes n + 1 nested calls
    assert run(DEEP_COUNT + 'print count(199);') == ['199']
    assert runtime_error(DEEP_COUNT + 'print count(200);').kind == 'StackOverflow'


def test_method_recursion_up_to_max_call_depth_succeeds():
    source = '''
    class A {
      walk(n) {
        if (n > 0) { return self.walk(n - 1) + 1; }
        return 0;
      }
    }
    print A().walk(199);
    '''
    assert run(source) == ['199']


def test_larger_max_call_depth_is_honoured():
    assert run(DEEP_COUNT + 'print count(999);', max_call_depth=1000) == ['999']


def test_recursion_limit_restored_after_run():
    limit = sys.getrecursionlimit()
    run(DEEP_COUNT + 'print count(10);')
    assert sys.getrecursionlimit() == limit
    runtime_error('fn f() { f(); } f();')
    assert sys.getrecursionlimit() == limit


def test_interpreter_usable_after_stack_overflow():
    out = []
    interp = Interpreter(output=out.append)
    with pytest.raises(GlintRuntimeError):
        interp.interpret('fn f() { f(); } f();')
    assert interp.call_depth == 0
    interp.interpret('print "still alive";')
    assert out == ['still alive']


@pytest.mark.parametrize('source', [
    'print -"a";',
    'print 1 + "a";',
    'print "a" + 1;',
    'print "a" - "b";',
    'print 1 < "2";',
    'print true * 2;',
    'print null > 1;',
])
def test_operand_type_errors(source):
    assert runtime_error(source).kind == 'TypeError'


def test_calling_non_callable():
    assert runtime_error('"text"();').kind == 'TypeError'


def test_property_access_on_non_instance():
    assert runtime_error('let x = 1; print x.y;').kind == 'TypeError'
    assert runtime_error('let x = 1; x.y = 2;').kind == 'TypeError'


def test_undefined_property():
    err = runtime_error('class A {} print A().nope;')
    assert err.kind == 'UndefinedProperty'
    err = runtime_error('class A {} class B < A { f() { return super.nope(); } } B().f();')
    assert err.kind == 'UndefinedProperty'


def test_superclass_must_be_class():
    err = runtime_error('let NotClass = "x";\nclass B < NotClass {}')
    assert err.kind == 'TypeError'
    assert err.line == 2


def test_truthiness():
    source = '''
    if (0) print "0 truthy";
    if ("") print "empty truthy";
    if (null) print "unreachable"; else print "null falsy";
    if (false) print "unreachable"; else print "false falsy";
    print !0;
    print !null;
    '''
    assert run(source) == ['0 truthy', 'empty truthy', 'null falsy', 'false falsy', 'false', 'true']


def test_equality_across_kinds_is_false():
    source = '''
    print 1 == "1";
    print null == false;
    print 0 == false;
    print 1 == true;
    print null == null;
    print "a" == "a";
    print 2 != 3;
    '''
    assert run(source) == ['false', 'false', 'false', 'false', 'true', 'true', 'true']


def test_arithmetic_and_concatenation():
    assert run('print 2 * 3 - 4 / 2; print "foo" + "bar"; print 0.1 + 0.2;') == [
        '4', 'foobar', '0.30000000000000004',
    ]


def test_evaluation_order_is_left_to_right():
    source = '''
    fn trace(v) { print v; return v; }
    print trace(1) + trace(2);
    fn three(a, b, c) { return c; }
    three(trace("a"), trace("b"), trace("c"));
    '''
    assert run(source) == ['1', '2', '3', 'a', 'b', 'c']


def test_while_and_for_loops():
    source = '''
    let total = 0;
    for (let i = 1; i <= 4; i = i + 1) total = total + i;
    print total;
    let n = 3;
    while (n > 0) n = n - 1;
    print n;
    '''
    assert run(source) == ['10', '0']


def test_for_loop_variable_is_scoped():
    err = runtime_error('for (let i = 0; i < 1; i = i + 1) {} print i;')
    assert err.kind == 'UndefinedVariable'


def test_return_unwinds_nested_blocks():
    source = '''
    fn find() {
      let i = 0;
      while (true) {
        { if (i == 3) { return i; } }
        i = i + 1;
      }
    }
    print find();
    fn nothing() { return; }
    print nothing();
    fn noReturn() {}
    print noReturn();
    '''
    assert run(source) == ['3', 'null', 'null']


def test_runtime_error_stops_program():
    out = []
    with pytest.raises(GlintRuntimeError):
        Interpreter(output=out.append).interpret('print "before"; print 1 / 0; print "after";')
    assert out == ['before']


def test_parse_error_prevents_any_execution():
    out = []
    with pytest.raises(ParseError):
        Interpreter(output=out.append).interpret('print "first"; print ;')
    assert out == []


def test_globals_persist_between_runs():
    out = []
    interp = Interpreter(output=out.append)
    interp.interpret('let greeting = "hi";')
    with pytest.raises(GlintRuntimeError):
        interp.interpret('greeting = greeting + 1;')
    interp.interpret('print greeting;')
    assert out == ['hi']


def test_run_returns_last_expression_value():
    interp = Interpreter(output=lambda s: None)
    assert interp.interpret('let a = 2; a * 21;') == 42.0
    assert interp.interpret('print a;') is None


def test_default_output_is_stdout(capsys):
    run_program('print "to stdout";')
    assert capsys.readouterr().out == 'to stdout\n'


def test_clock_returns_number():
    interp = Interpreter(output=lambda s: None)
    assert isinstance(interp.interpret('clock();'), float)


def test_debug_file(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=3, debug_file=str(debug_file), output=lambda s: None)
    interp.interpret('let x = 1; fn f(a) { return a; } if (x == 1) f(x); class K {}')
    interp.close()
    log = debug_file.read_text(encoding='utf-8')
    assert 'declare x: Number = 1' in log
    assert 'define function f' in log
    assert 'if condition true -> True' in log
    assert 'call <fn f>(1)' in log
    assert 'define class K' in log


def test_no_debug_file_without_verbosity(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_file=str(debug_file), output=lambda s: None)
    interp.interpret('print 1;')
    interp.close()
    assert not debug_file.exists()


def test_error_string_format():
    err = runtime_error('\n\nprint 1 / 0;')
    assert str(err) == '[line 3] DivisionByZero: division by zero'
    assert to_string(-0.5) == '-0.5'
