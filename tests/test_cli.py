"""Tests for the CLI argument parsing used by `twitter-mcp call`."""
import pytest
import typer

from twitter_mcp.cli import _parse_args


def test_integers_are_coerced():
    assert _parse_args(["query=openai", "limit=5", "offset=-3"]) == {
        "query": "openai",
        "limit": 5,
        "offset": -3,
    }


@pytest.mark.parametrize("value", ["--5", "²", "5a", "", "1.5"])
def test_non_integers_stay_strings(value):
    assert _parse_args([f"limit={value}"]) == {"limit": value}


def test_value_may_contain_equals_sign():
    assert _parse_args(["query=a=b"]) == {"query": "a=b"}


@pytest.mark.parametrize("pair", ["limit", "=5"])
def test_malformed_pair_is_rejected(pair):
    with pytest.raises(typer.BadParameter):
        _parse_args([pair])
