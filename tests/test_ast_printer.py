import pytest

from pylox.ast_printer import AstPrinter
from pylox.errors import ErrorReporter
from pylox.parser import parse_program


def render(source):
    reporter = ErrorReporter()
    statements = parse_program(source, reporter)
    printer = AstPrinter()
    return [printer.print(stmt) for stmt in statements]


@pytest.mark.parametrize('source, expected', [
    ('1 + 2 * 3;', '(; (+ 1.0 (* 2.0 3.0)))'),
    ('(1 + 2) * 3;', '(; (* (group (+ 1.0 2.0)) 3.0))'),
    ('print -a;', '(print (- a))'),
    ('print !true == false;', '(print (== (! true) false))'),
    ('a = b = nil;', '(; (= a (= b nil)))'),
    ('x ? "y" : "z";', '(; (?: x "y" "z"))'),
    ('a or b and c;', '(; (or a (and b c)))'),
    ('o.f(1, 2).g = 3;', '(; (= (. (call (. o f) 1.0 2.0) g) 3.0))'),
    ('(1, 2);', '(; (group (, 1.0 2.0)))'),
])
def test_expressions(source, expected):
    assert render(source) == [expected]


def test_for_loop_shows_desugaring():
    assert render('for (var i = 0; i < 2; i = i + 1) print i;') == [
        '(block (var i 0.0) (while (< i 2.0) (block (print i) (; (= i (+ i 1.0))))))'
    ]


def test_declarations():
    assert render('var a; fun f(x, y) { return x; }') == [
        '(var a)',
        '(function f [x y] [(return x)])',
    ]


def test_class_members():
    source = 'class B < A { init() { super.init(); } class make() { return B(); } size { return 1; } }'
    assert render(source) == [
        '(class B < A'
        ' (method init [] [(; (call (super init)))])'
        ' (static-method make [] [(return (call B))])'
        ' (getter size [] [(return 1.0)]))'
    ]


def test_control_flow():
    assert render('if (a) print 1; else print 2; while (b) { break; }') == [
        '(if-else a (print 1.0) (print 2.0))',
        '(while b (block (break)))',
    ]


def test_lambda():
    assert render('var f = fun (n) { return n; };') == ['(var f (lambda [n] [(return n)]))']


def test_missing_left_operand():
    assert render('* 2;') == ['(; (* <missing> 2.0))']
