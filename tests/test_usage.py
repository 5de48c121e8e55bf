import io

from mesisim.usage import help_text, print_help


def test_help_mentions_every_option():
    text = help_text()
    for option in ("-h", "-t <tracefile>", "-s <s>", "-E <E>", "-b <b>", "-o <outputfile>"):
        assert option in text


def test_help_has_one_line_per_option():
    lines = help_text().splitlines()
    assert len(lines) == 6
    assert all(line.startswith("  -") for line in lines)


def test_print_help_to_stream():
    buffer = io.StringIO()
    print_help(buffer)
    assert buffer.getvalue() == help_text() + "\n"


def test_print_help_defaults_to_stdout(capsys):
    print_help()
    assert capsys.readouterr().out == help_text() + "\n"