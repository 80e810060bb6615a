"""
Collision Resolver
==================

Per-tick hit testing between the player and every active entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.entities import Obstacle, Player, Token
from token_dodge.dodge_core.entity_store import EntityStore
from token_dodge.dodge_core.geometry import intersects
from token_dodge.dodge_core.session import SessionLedger


@dataclass(frozen=True)
class CollisionReport:
    """What the player touched this tick."""
    collected: Tuple[Token, ...] = ()
    hits: Tuple[Obstacle, ...] = ()
    finished: bool = False               # True if a hit took the last life


class CollisionResolver:
    """
    Exact AABB hit testing (margin 0, edge comparisons).

    Tokens are resolved before obstacles. Collected tokens and hit obstacles
    are removed from the store. Once the last life is lost, remaining
    obstacle contacts in the same tick are left alone.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._token_value = config.tokens.value
        self._damage = config.session.damage_per_hit

    def resolve(
        self,
        player: Player,
        store: EntityStore,
        ledger: SessionLedger
    ) -> CollisionReport:
        """
        Test the player against every token, then every obstacle.

        Args:
            player: Player hitbox.
            store: Active entities; hit entities are removed.
            ledger: Session ledger to credit and debit.

        Returns:
            CollisionReport of this tick's contacts.
        """
        collected: List[Token] = []
        hits: List[Obstacle] = []
        finished = False

        if not ledger.running:
            return CollisionReport()

        for token in store.tokens:
            if intersects(player, token):
                store.remove_token(token.id)
                ledger.record_token(self._token_value)
                collected.append(token)

        for obstacle in store.obstacles:
            if not ledger.running:
                break
            if intersects(player, obstacle):
                store.remove_obstacle(obstacle.id)
                finished = ledger.record_hit(self._damage)
                hits.append(obstacle)

        return CollisionReport(
            collected=tuple(collected),
            hits=tuple(hits),
            finished=finished
        )
