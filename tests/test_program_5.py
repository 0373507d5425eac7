from pathlib import Path

from pylox.interpreter import run_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5(capsys):
    with open(EXAMPLES / 'program_5.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    lox = run_program(source)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert not lox.reporter.had_critical_error
    assert not lox.reporter.had_runtime_error
    assert out_lines == ['0', '1', '2', '5', '6']
