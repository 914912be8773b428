from pathlib import Path
from glint.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_7_closures(capsys):
    """Test program 7: counters made by the same factory.

    Each call to makeCounter() captures a fresh environment, and the
    returned closure keeps mutating that environment between calls.
    """
    with open(EXAMPLES / 'program_7.glint', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['1', '2', '1', '3', '<fn increment>']
