import PIL.Image
import pytest

import mandel
from escapetime import render


def _run(argv):
    mandel.main(argv)


def test_writes_grayscale_image(tmp_path):
    output = tmp_path / 'mandel.png'
    _run(['--', str(output), '40x30', '-1.20,0.35', '-1,0.20'])

    with PIL.Image.open(output) as image:
        assert image.mode == 'L'
        assert image.size == (40, 30)
        written = image.tobytes()

    expected = bytearray(40 * 30)
    render(expected, (40, 30), complex(-1.20, 0.35), complex(-1.0, 0.20))
    assert written == bytes(expected)


@pytest.mark.parametrize(
    'argv',
    [
        ['mandel.png', '40x30', '-1.20,0.35', '-1,0.20'],
        ['mandel.png', '40x30', '-1.20,0.35', '-1,0.20', '--backend', 'bands', '--workers', '2'],
        ['--format', 'png', 'mandel.png', '40x30', '-1.20,0.35', '-1,0.20'],
    ],
)
def test_negative_corners_are_positional(tmp_path, monkeypatch, argv):
    monkeypatch.chdir(tmp_path)
    _run(argv)

    with PIL.Image.open(tmp_path / 'mandel.png') as image:
        assert image.size == (40, 30)
        written = image.tobytes()

    expected = bytearray(40 * 30)
    render(expected, (40, 30), complex(-1.20, 0.35), complex(-1.0, 0.20))
    assert written == bytes(expected)


def test_negative_fraction_without_leading_digit(tmp_path):
    _run([str(tmp_path / 'dot.png'), '8x6', '-.5,.25', '.25,-.5'])
    with PIL.Image.open(tmp_path / 'dot.png') as image:
        assert image.size == (8, 6)


@pytest.mark.parametrize('backend', ['bands', 'tensor'])
def test_backends_write_identical_images(tmp_path, backend):
    serial = tmp_path / 'serial.png'
    other = tmp_path / f'{backend}.png'
    _run(['--', str(serial), '32x24', '-2,1.2', '0.6,-1.2'])
    _run(['--backend', backend, '--', str(other), '32x24', '-2,1.2', '0.6,-1.2'])

    with PIL.Image.open(serial) as a, PIL.Image.open(other) as b:
        assert a.tobytes() == b.tobytes()


def test_format_appends_suffix(tmp_path):
    _run(['--format', 'bmp', '--', str(tmp_path / 'plain'), '8x6', '-2,1', '1,-1'])
    with PIL.Image.open(tmp_path / 'plain.bmp') as image:
        assert image.format == 'BMP'
        assert image.size == (8, 6)


def test_missing_suffix_defaults_to_png(tmp_path):
    _run(['--', str(tmp_path / 'plain'), '8x6', '-2,1', '1,-1'])
    with PIL.Image.open(tmp_path / 'plain.png') as image:
        assert image.format == 'PNG'


def test_verbose_logs_progress(tmp_path, capsys):
    _run(['--verbose', '--', str(tmp_path / 'out.png'), '8x6', '-2,1', '1,-1'])
    out = capsys.readouterr().out
    assert 'Rendered in' in out
    assert 'out.png' in out


@pytest.mark.parametrize(
    'argv',
    [
        [],
        ['out.png'],
        ['out.png', '10x10', '0,1'],
        ['out.png', '10x10', '0,1', '1,0', 'extra'],
    ],
)
def test_wrong_argument_count_prints_usage(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run(argv)
    assert excinfo.value.code != 0
    assert 'usage:' in capsys.readouterr().err


@pytest.mark.parametrize(
    'argv, message',
    [
        (['out.png', '10y10', '0,1', '1,0'], 'error parsing image dimensions'),
        (['out.png', '0x10', '0,1', '1,0'], 'image dimensions must be positive'),
        (['out.png', '10x10', '0;1', '1,0'], 'error parsing upper left corner point'),
        (['out.png', '10x10', '0,1', '1,zero'], 'error parsing lower right corner point'),
        (['out.png', '10x10', '0,1', '1,0', '--workers', '2'], '--workers requires the bands backend'),
        (['out.png', '10x10', '0,1', '1,0', '--backend', 'bands', '--workers', '0'], '--workers must be positive'),
        (['out.png', '10x10', '0,1', '1,0', '--format', 'bmp'], 'does not match --format'),
        (['out.nosuchformat', '10x10', '0,1', '1,0'], 'Pillow cannot write'),
    ],
)
def test_invalid_arguments_are_fatal(argv, message, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run(argv)
    assert excinfo.value.code != 0
    assert message in capsys.readouterr().err


def test_unwritable_output_reports_cause(tmp_path, capsys):
    blocker = tmp_path / 'blocker'
    blocker.write_text('not a directory')

    with pytest.raises(SystemExit) as excinfo:
        _run(['--', str(blocker / 'out.png'), '4x4', '-2,2', '2,-2'])
    assert excinfo.value.code == 1
    assert 'error writing image file' in capsys.readouterr().err
