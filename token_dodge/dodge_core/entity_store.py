"""
Entity Store
============

Authoritative collections of active obstacles and tokens for one tick.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from token_dodge.dodge_core.entities import Obstacle, Token


class EntityStore:
    """
    Active obstacles and tokens with their spawn/advance/despawn lifecycle.

    Entities are immutable; advancing replaces them with shifted copies.
    Ids come from a per-session counter so spawn sequences are reproducible.
    """

    def __init__(
        self,
        obstacles: Iterable[Obstacle] = (),
        tokens: Iterable[Token] = (),
        next_id: int = 1
    ):
        self._obstacles: List[Obstacle] = list(obstacles)
        self._tokens: List[Token] = list(tokens)
        self._next_id = next_id

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return tuple(self._obstacles)

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return tuple(self._tokens)

    @property
    def obstacle_count(self) -> int:
        return len(self._obstacles)

    @property
    def token_count(self) -> int:
        return len(self._tokens)

    @property
    def next_id(self) -> int:
        return self._next_id

    def allocate_id(self) -> int:
        """Reserve the next entity id."""
        entity_id = self._next_id
        self._next_id += 1
        return entity_id

    def add_obstacles(self, obstacles: Sequence[Obstacle], cap: int) -> int:
        """
        Append obstacles up to ``cap`` active obstacles.

        Obstacles beyond the cap are dropped for this tick, not queued.

        Returns:
            Number of obstacles actually added.
        """
        room = max(0, cap - len(self._obstacles))
        accepted = list(obstacles)[:room]
        self._obstacles.extend(accepted)
        return len(accepted)

    def add_token(self, token: Token, cap: int) -> bool:
        """Append a token unless ``cap`` tokens are already active."""
        if len(self._tokens) >= cap:
            return False
        self._tokens.append(token)
        return True

    def advance(self, speed: float) -> int:
        """
        Move every entity left by ``speed`` and cull the ones that left the field.

        An entity is gone once its right edge reaches the left boundary
        (``x <= -width``).

        Returns:
            Number of entities culled.
        """
        before = len(self._obstacles) + len(self._tokens)
        self._obstacles = [
            o for o in (o.shifted(-speed) for o in self._obstacles) if o.x > -o.width
        ]
        self._tokens = [
            t for t in (t.shifted(-speed) for t in self._tokens) if t.x > -t.width
        ]
        return before - len(self._obstacles) - len(self._tokens)

    def remove_token(self, token_id: int) -> Optional[Token]:
        for i, token in enumerate(self._tokens):
            if token.id == token_id:
                return self._tokens.pop(i)
        return None

    def remove_obstacle(self, obstacle_id: int) -> Optional[Obstacle]:
        for i, obstacle in enumerate(self._obstacles):
            if obstacle.id == obstacle_id:
                return self._obstacles.pop(i)
        return None

    def clear(self) -> None:
        """Empty the store and restart id allocation."""
        self._obstacles = []
        self._tokens = []
        self._next_id = 1
