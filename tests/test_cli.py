import builtins

import pytest

from pylox.__main__ import EX_DATAERR, EX_NOINPUT, EX_SOFTWARE, EX_USAGE, main


def write_script(tmp_path, source, name='script.lox'):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return str(path)


def feed_input(monkeypatch, lines):
    pending = list(lines)

    def fake_input(prompt=''):
        if not pending:
            raise EOFError
        return pending.pop(0)

    monkeypatch.setattr(builtins, 'input', fake_input)


def test_runs_script(tmp_path, capsys):
    main([write_script(tmp_path, 'print "hello";\nprint 1 + 1;')])
    assert capsys.readouterr().out.splitlines() == ['hello', '2']


def test_too_many_scripts_is_usage_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(['a.lox', 'b.lox'])
    assert exc.value.code == EX_USAGE
    assert 'usage' in capsys.readouterr().out


def test_static_error_exit_code(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([write_script(tmp_path, 'break;')])
    assert exc.value.code == EX_DATAERR
    assert "Can't use 'break' outside of a loop." in capsys.readouterr().err


def test_runtime_error_exit_code(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([write_script(tmp_path, 'print "start";\nprint -nil;')])
    assert exc.value.code == EX_SOFTWARE
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ['start']
    assert captured.err.strip() == '[line 2] RuntimeError: Operand must be a number.'


def test_missing_script(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / 'nope.lox')])
    assert exc.value.code == EX_NOINPUT
    assert 'cannot read' in capsys.readouterr().err


def test_warnings_do_not_fail(tmp_path, capsys):
    main([write_script(tmp_path, '{ var unused = 1; }\nprint "ok";')])
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ['ok']
    assert "[line 1] Warning at 'unused': Local variable 'unused' is never used." in captured.err


def test_print_ast(tmp_path, capsys):
    main(['--print-ast', write_script(tmp_path, 'print 1 + 2 * 3;')])
    assert capsys.readouterr().out.splitlines() == ['(print (+ 1.0 (* 2.0 3.0)))']


def test_verbose_trace_goes_to_debug_file(tmp_path, capsys):
    trace = tmp_path / 'trace.txt'
    main(['-v', '--debug-file', str(trace), write_script(tmp_path, 'fun f() {} f();')])
    assert 'call <fn f> with 0 argument(s)' in trace.read_text(encoding='utf-8')


def test_prompt_keeps_state_and_recovers_from_errors(monkeypatch, capsys):
    feed_input(monkeypatch, ['var a = 1;', 'print a +;', 'print nope;', 'a = a + 1;', 'print a;'])
    main([])
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ['2', '2']
    assert 'Expect expression.' in captured.err
    assert "Undefined variable 'nope'." in captured.err


def test_prompt_print_ast(monkeypatch, capsys):
    feed_input(monkeypatch, ['a = 1;'])
    main(['--print-ast'])
    assert capsys.readouterr().out.splitlines() == ['(; (= a 1.0))']
