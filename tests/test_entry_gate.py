"""
Tests for entry gates.
"""

import pytest

from token_dodge.dodge_core.entry_gate import AlwaysOpen, BalanceGate


def test_always_open():
    """The default gate always admits."""
    assert AlwaysOpen().can_start()


@pytest.mark.parametrize("balance, allowed", [
    (0, False),
    (99.9, False),
    (100, True),
    (5000, True),
    (None, False),
])
def test_balance_threshold(balance, allowed):
    """Balance gate admits only at or above the minimum."""
    assert BalanceGate(100, lambda: balance).can_start() is allowed


def test_lookup_failure_refuses(caplog):
    """A failing balance lookup refuses and logs."""
    def lookup():
        raise TimeoutError("rpc timeout")

    assert not BalanceGate(1, lookup).can_start()
    assert "Balance lookup failed" in caplog.text


def test_negative_minimum_rejected():
    """A negative minimum is a config error."""
    with pytest.raises(ValueError):
        BalanceGate(-1, lambda: 10)
