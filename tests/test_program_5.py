from pathlib import Path
from glint.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5_control_flow(capsys):
    """Loops and conditionals; 0 and "" are truthy, null is falsy."""
    with open(EXAMPLES / 'program_5.glint', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['0', '1', '2', '0', 'one', '2', 'zero is truthy', 'empty is truthy', 'null is falsy']
