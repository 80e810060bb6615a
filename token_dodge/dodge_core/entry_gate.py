"""
Entry Gates
===========

Decide whether a new session may start. The game only asks ``can_start()``;
where the answer comes from (a wallet balance, a feature flag) is up to the
gate.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class EntryGate(Protocol):
    def can_start(self) -> bool:
        ...


class AlwaysOpen:
    """Gate that admits every session."""

    def can_start(self) -> bool:
        return True


class BalanceGate:
    """
    Admit sessions only for holders of at least ``min_balance`` tokens.

    A lookup that fails or returns None counts as no balance.
    """

    def __init__(self, min_balance: float, balance_lookup: Callable[[], Optional[float]]):
        """
        Initialize gate.

        Args:
            min_balance: Smallest balance that may play.
            balance_lookup: Returns the current holder balance, or None if
                unknown (e.g. no wallet connected).
        """
        if min_balance < 0:
            raise ValueError(f"min_balance must be non-negative, got {min_balance}")
        self.min_balance = min_balance
        self._lookup = balance_lookup

    def can_start(self) -> bool:
        try:
            balance = self._lookup()
        except Exception:
            logger.warning("Balance lookup failed; refusing entry", exc_info=True)
            return False
        if balance is None:
            return False
        return balance >= self.min_balance
