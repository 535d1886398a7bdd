import pytest

from accessgate.utils.ttl import resolve_ttl_ms, ttl_seconds


@pytest.mark.parametrize(
    "ttl_ms, expected",
    [(1, 1), (999, 1), (1000, 1), (1001, 2), (900_000, 900), (86_400_000, 86_400)],
)
def test_ttl_seconds_rounds_up(ttl_ms, expected):
    assert ttl_seconds(ttl_ms) == expected


def test_ttl_seconds_rejects_non_positive():
    with pytest.raises(ValueError):
        ttl_seconds(0)


def test_resolve_ttl_ms():
    assert resolve_ttl_ms(None, 5) == 5
    assert resolve_ttl_ms(0, 5) == 5
    assert resolve_ttl_ms(-1, 5) == 5
    assert resolve_ttl_ms(7, 5) == 7
