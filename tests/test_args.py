import pytest

from tools.args import positional_int, resolve_threads
from tools.metrics import build_parser


@pytest.mark.parametrize("raw, expected", [
    (None, 1024),
    ("2048", 2048),
    ("abc", 1024),
    ("12.5", 1024),
    ("0", 1024),
    ("-3", 1024),
])
def test_positional_int(raw, expected):
    assert positional_int(raw, 1024, "boids") == expected


def test_malformed_value_warns(capsys):
    positional_int("wide", 1920, "width")
    assert "[Args] Warning: width 'wide'" in capsys.readouterr().out


def test_resolve_threads():
    assert resolve_threads(None) is None
    assert resolve_threads(4) == 4
    assert resolve_threads(0) is None


def test_benchmark_defaults():
    args = build_parser().parse_args([])
    assert args.frames == 100
    assert args.results == "speedup_data.txt"
    assert not args.headless and not args.sweep
