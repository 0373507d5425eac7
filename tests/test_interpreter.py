import io

import pytest

from pylox.interpreter import Lox, run_program


def run(source):
    out = io.StringIO()
    err = io.StringIO()
    lox = run_program(source, out=out, err=err)
    return out.getvalue().splitlines(), err.getvalue(), lox


def test_print_sum():
    out, _, _ = run('print 1 + 2;')
    assert out == ['3']


def test_block_shadowing():
    out, _, _ = run('var a = 1; { var a = 2; print a; } print a;')
    assert out == ['2', '1']


def test_closure_counter():
    source = ('fun c() { var i = 0; fun inc() { i = i + 1; return i; } return inc; } '
              'var f = c(); print f(); print f();')
    out, _, _ = run(source)
    assert out == ['1', '2']


def test_closure_sees_later_assignment():
    source = '''
    var get;
    {
      var x = 1;
      fun g() { return x; }
      get = g;
      x = 2;
    }
    print get();
    '''
    out, _, _ = run(source)
    assert out == ['2']


def test_super_dispatch():
    source = ('class A { f() { return "A.f"; } } '
              'class B < A { f() { return super.f() + "+B"; } } print B().f();')
    out, _, _ = run(source)
    assert out == ['A.f+B']


def test_super_skips_overrides_below_the_lexical_class():
    source = '''
    class A { m() { return "A"; } }
    class B < A { m() { return "B"; } test() { return super.m(); } }
    class C < B { m() { return "C"; } }
    print C().test();
    '''
    out, _, _ = run(source)
    assert out == ['A']


def test_initializer_sets_fields():
    out, _, _ = run('class C { init(x) { this.x = x; } } var c = C(10); print c.x;')
    assert out == ['10']


def test_initializer_returns_instance_even_with_early_return():
    source = '''
    class C { init(flag) { this.seen = 1; if (flag) return; this.seen = 2; } }
    var c = C(true);
    print c.seen;
    print c.init(false) == c;
    print c.seen;
    '''
    out, _, _ = run(source)
    assert out == ['1', 'true', '2']


def test_for_loop():
    out, _, _ = run('for (var i=0; i<3; i=i+1) print i;')
    assert out == ['0', '1', '2']


@pytest.mark.parametrize('source, expected', [
    ('"ab" + 1;', 'ab1'),
    ('1 + "ab";', '1ab'),
    ('"n" + nil;', 'nnil'),
    ('"t" + true;', 'ttrue'),
])
def test_single_expression_is_echoed(source, expected):
    out, _, _ = run(source)
    assert out == [expected]


@pytest.mark.parametrize('source, expected', [
    ('print nil == nil;', 'true'),
    ('print nil == 0;', 'false'),
    ('print nil == false;', 'false'),
    ('print nil == "";', 'false'),
    ('print true == 1;', 'false'),
    ('print "a" == "a";', 'true'),
    ('print 1 != 2;', 'true'),
])
def test_equality(source, expected):
    out, _, _ = run(source)
    assert out == [expected]


def test_instances_compare_by_identity():
    source = 'class A {} var a = A(); var b = A(); print a == a; print a == b; print A == A;'
    out, _, _ = run(source)
    assert out == ['true', 'false', 'true']


@pytest.mark.parametrize('source, expected', [
    ('print 1.0;', '1'),
    ('print 1.5;', '1.5'),
    ('print 7 / 2;', '3.5'),
    ('print -0.25;', '-0.25'),
    ('print 100000000000000000000;', '1e+20'),
    ('print 0.1 + 0.2;', '0.30000000000000004'),
])
def test_number_formatting(source, expected):
    out, _, _ = run(source)
    assert out == [expected]


def test_truthiness():
    source = '''
    if (0) print "zero"; else print "no zero";
    if ("") print "empty"; else print "no empty";
    if (nil) print "nil"; else print "no nil";
    if (false) print "false"; else print "no false";
    '''
    out, _, _ = run(source)
    assert out == ['zero', 'empty', 'no nil', 'no false']


def test_logical_operators_short_circuit():
    source = '''
    fun side(v) { print "side"; return v; }
    print false and side(true);
    print true or side(false);
    print nil or "default";
    print 1 and 2;
    '''
    out, _, _ = run(source)
    assert out == ['false', 'true', 'default', '2']


def test_ternary_only_evaluates_selected_branch():
    source = '''
    fun side(v) { print v; return v; }
    print true ? side("then") : side("else");
    '''
    out, _, _ = run(source)
    assert out == ['then', 'then']


def test_arguments_are_evaluated_left_to_right():
    source = '''
    fun side(v) { print v; return v; }
    fun three(a, b, c) { return a + b + c; }
    print three(side(1), side(2), side(3));
    '''
    out, _, _ = run(source)
    assert out == ['1', '2', '3', '6']


def test_bound_method_keeps_this():
    source = '''
    class Person {
      init(name) { this.name = name; }
      greet() { return "hi " + this.name; }
    }
    var p = Person("ann");
    var g = p.greet;
    print (p.greet)();
    print p.greet();
    print g();
    '''
    out, _, _ = run(source)
    assert out == ['hi ann', 'hi ann', 'hi ann']


def test_fields_shadow_methods():
    source = '''
    class A { m() { return "method"; } }
    var a = A();
    a.m = fun () { return "field"; };
    print a.m();
    '''
    out, _, _ = run(source)
    assert out == ['field']


def test_getter_runs_without_call_syntax():
    source = '''
    class Square {
      init(side) { this.side = side; }
      area { return this.side * this.side; }
    }
    print Square(3).area;
    '''
    out, _, _ = run(source)
    assert out == ['9']


def test_static_methods_are_inherited():
    source = '''
    class Base { class create() { return "made"; } }
    class Derived < Base {}
    print Derived.create();
    '''
    out, _, _ = run(source)
    assert out == ['made']


def test_lambda_captures_enclosing_scope():
    source = '''
    fun adder(n) { return fun (x) { return x + n; }; }
    var add2 = adder(2);
    print add2(40);
    print add2;
    '''
    out, _, _ = run(source)
    assert out == ['42', '<fn lambda>']


def test_stringified_callables_and_instances():
    source = 'fun f() {} class K { m() {} } print f; print K; print K(); print K().m;'
    out, _, _ = run(source)
    assert out == ['<fn f>', 'K class', 'K instance', '<fn m>']


def test_break_exits_only_innermost_loop():
    source = '''
    for (var i = 0; i < 2; i = i + 1) {
      while (true) { break; }
      print i;
    }
    '''
    out, _, _ = run(source)
    assert out == ['0', '1']


def test_return_inside_loop_leaves_function():
    source = '''
    fun first() { while (true) { return "done"; } }
    print first();
    '''
    out, _, _ = run(source)
    assert out == ['done']


@pytest.mark.parametrize('source, message', [
    ('var x; print x;', "[line 1] RuntimeError: Uninitialized variable 'x'."),
    ('{ var x; print x; }', "[line 1] RuntimeError: Uninitialized variable 'x'."),
    ('print y;', "[line 1] RuntimeError: Undefined variable 'y'."),
    ('y = 1;', "[line 1] RuntimeError: Undefined variable 'y'."),
    ('print 1 / 0;', "[line 1] RuntimeError: Division by zero."),
    ('print -"a";', "[line 1] RuntimeError: Operand must be a number."),
    ('print 1 < "a";', "[line 1] RuntimeError: Operands must be numbers."),
    ('print true + nil;', "[line 1] RuntimeError: Operands must be two numbers or two strings."),
    ('"s"();', "[line 1] RuntimeError: Can only call functions and classes."),
    ('fun f(a) { return a; } f();', "[line 1] RuntimeError: Expected 1 arguments but got 0."),
    ('class A {} A(1);', "[line 1] RuntimeError: Expected 0 arguments but got 1."),
    ('print 1 .x;', "[line 1] RuntimeError: Only instances have properties."),
    ('var a = 1; a.x = 2;', "[line 1] RuntimeError: Only instances have fields."),
    ('class A {} print A().x;', "[line 1] RuntimeError: Undefined property 'x'."),
    ('class A {} print A.x;', "[line 1] RuntimeError: Undefined static method 'x'."),
    ('var B = 1; class A < B {}', "[line 1] RuntimeError: Superclass must be a class."),
    ('class A {} class B < A { m() { return super.nope(); } } B().m();',
     "[line 1] RuntimeError: Undefined property 'nope'."),
])
def test_runtime_errors(source, message):
    out, err, lox = run(source)
    assert err.strip() == message
    assert lox.reporter.had_runtime_error
    assert not lox.reporter.had_critical_error


def test_runtime_error_stops_remaining_statements():
    out, err, _ = run('print "before";\nprint nope;\nprint "after";')
    assert out == ['before']
    assert err.strip() == "[line 2] RuntimeError: Undefined variable 'nope'."


@pytest.mark.parametrize('source, name', [
    ('{ var a = 0; var b = (fun () { b = 1; return 2; })(); print a + b; }', 'b'),
    ('{ var g = (fun () { g = 1; return 2; })(); print g; }', 'g'),
])
def test_assigning_variable_from_its_own_initializer(source, name):
    out, err, lox = run(source)
    assert out == []
    assert err.strip() == f"[line 1] RuntimeError: Uninitialized variable '{name}'."
    assert lox.reporter.had_runtime_error


def test_getter_named_init_is_an_ordinary_getter():
    out, _, lox = run('class A { init { return 1; } } print A().init;')
    assert out == ['1']
    assert not lox.reporter.had_critical_error


def test_too_deep_nesting_is_a_static_error():
    depth = 2000
    out, err, lox = run('print ' + '(' * depth + '1' + ')' * depth + ';')
    assert out == []
    assert lox.reporter.had_critical_error
    assert 'Too much nesting.' in err


def test_nil_initializer_is_not_uninitialized():
    out, err, _ = run('var x = nil; print x;')
    assert out == ['nil']
    assert err == ''


def test_missing_left_operand_fails_at_runtime():
    out, err, lox = run('print * 2;')
    assert 'Warning' in err
    assert 'RuntimeError: Binary expression missing left operand.' in err
    assert lox.reporter.had_runtime_error


def test_static_errors_prevent_execution():
    out, err, lox = run('print "never";\nbreak;')
    assert out == []
    assert lox.reporter.had_critical_error
    assert "[line 2] Error at 'break'" in err


def test_deep_recursion_reports_stack_overflow():
    out, err, lox = run('fun f() { return f(); } f();')
    assert lox.reporter.had_runtime_error
    assert 'Stack overflow.' in err


def test_session_keeps_globals_between_runs():
    out = io.StringIO()
    lox = Lox(out=out, err=io.StringIO())
    lox.run('var a = 1;')
    lox.run('fun inc() { a = a + 1; }')
    lox.run('inc(); print a;')
    lox.close()
    assert out.getvalue().splitlines() == ['2']


def test_debug_trace_is_written(tmp_path):
    trace = tmp_path / 'trace.txt'
    lox = Lox(out=io.StringIO(), err=io.StringIO(), debug_level=3, debug_file=str(trace))
    lox.run('var a = 1; fun f() { return a; } if (f()) print a;')
    lox.close()
    text = trace.read_text(encoding='utf-8')
    assert 'declare a = 1' in text
    assert 'call <fn f> with 0 argument(s)' in text
    assert 'if condition 1 -> True' in text
