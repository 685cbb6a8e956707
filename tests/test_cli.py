import pytest

from graphene_host.cli import _runtime_args, build_parser, main


def test_parser_includes_descriptor_group():
    parser = build_parser()
    text = parser.format_help()
    assert 'Graphene Host' in text
    assert 'Graphene host lets you run marionette tests in graphene' in text
    assert '--runtime' in text


def test_parser_defaults():
    args = build_parser().parse_args(['--runtime', '/opt/graphene'])
    assert args.runtime == '/opt/graphene'
    assert args.port == 2828
    assert args.profile is None
    assert args.verbose is False


def test_runtime_args_after_separator():
    args = build_parser().parse_args(['--runtime', 'x', '--', '-screen', 'galaxy'])
    assert _runtime_args(args.runtime_args) == ['-screen', 'galaxy']


def test_missing_runtime_exits_with_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1


def test_runtime_crash_exits_with_error(fake_runtime, free_port):
    with pytest.raises(SystemExit) as excinfo:
        main(['--runtime', fake_runtime, '--port', str(free_port), '--', '--crash'])
    assert excinfo.value.code == 1
