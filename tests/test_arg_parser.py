import pytest

from histocam.utils.arg_parser import parse_arguments


def test_defaults():
    args = parse_arguments([])

    assert args.index == 0
    assert args.logo is None
    assert not args.logo_enabled
    assert not args.grayscale
    assert args.period_ms == 33
    assert args.ink == (255, 255, 255)
    assert not args.plot
    assert not args.autostart
    assert not args.debug


def test_ink_is_converted_to_bgr():
    args = parse_arguments(['--ink', '255,128,0'])

    assert args.ink == (0, 128, 255)


@pytest.mark.parametrize("argv", [
    ['--ink', 'red'],
    ['--ink', '1,2'],
    ['--ink', '300,0,0'],
    ['--period-ms', '0'],
])
def test_invalid_arguments_exit(argv):
    with pytest.raises(SystemExit):
        parse_arguments(argv)


def test_session_flags():
    args = parse_arguments(['--index', '2', '--grayscale', '--logo', 'logo.png',
                            '--logo-enabled', '--autostart'])

    assert args.index == 2
    assert args.grayscale
    assert args.logo == 'logo.png'
    assert args.logo_enabled
    assert args.autostart
