"""
Pattern Selector
================

Timed state machine over the obstacle spawning strategies, plus the token
spawner that runs independently of the active pattern.

Patterns:
- random: one obstacle at a uniformly random height
- wave: one obstacle following a sine wave over successive spawns
- corridor: a top/bottom pair leaving a safe tunnel, placed atomically
- cluster: a short horizontal group near one height, led by a forced type
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.difficulty import DifficultyProfile
from token_dodge.dodge_core.entities import Obstacle, Token
from token_dodge.dodge_core.entity_store import EntityStore
from token_dodge.dodge_core.obstacle_catalog import ObstacleCatalog
from token_dodge.dodge_core.placement import PlacementKind, PlacementSolver
from token_dodge.dodge_core.rng import SpawnRng


class PatternKind(str, Enum):
    RANDOM = "random"
    WAVE = "wave"
    CORRIDOR = "corridor"
    CLUSTER = "cluster"


@dataclass(frozen=True)
class PatternState:
    """
    Pattern selector state carried between ticks.

    The spawn timestamps are session-elapsed milliseconds; None means
    nothing has spawned yet this session.
    """
    kind: PatternKind = PatternKind.RANDOM
    progress: int = 0
    last_obstacle_ms: Optional[float] = None
    last_token_ms: Optional[float] = None
    switch_window: int = 0


def _cooled_down(last_ms: Optional[float], now_ms: float, cooldown_ms: float) -> bool:
    return last_ms is None or now_ms - last_ms > cooldown_ms


class PatternSelector:
    """
    Emits new obstacles and tokens for a tick.

    All methods take the current PatternState and return an updated copy;
    the selector itself holds only collaborators and config.
    """

    def __init__(
        self,
        rng: SpawnRng,
        config: Optional[GameConfig] = None,
        solver: Optional[PlacementSolver] = None,
        catalog: Optional[ObstacleCatalog] = None
    ):
        """
        Initialize pattern selector.

        Args:
            rng: Random source for spawn rolls and pattern reselection.
            config: Game configuration. Uses default if None.
            solver: Placement solver. Built from config and rng if None.
            catalog: Obstacle catalog. Built from config if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = rng
        self._solver = solver if solver is not None else PlacementSolver(rng, config)
        self._catalog = catalog if catalog is not None else ObstacleCatalog(config)
        self._patterns = config.patterns
        self._board_width = config.board.width
        self._board_height = config.board.height
        self._kinds = [PatternKind(k) for k in config.patterns.kinds]

    # ------------------------------------------------------------------
    # Pattern switching
    # ------------------------------------------------------------------

    def maybe_switch(self, state: PatternState, elapsed_ms: float) -> PatternState:
        """
        Reselect the pattern once per switch interval of session time.

        The new kind is drawn uniformly from all kinds (it may repeat the
        current one); progress resets either way.
        """
        window = int(max(0.0, elapsed_ms) // self._patterns.switch_interval_ms)
        if window <= state.switch_window:
            return state
        return replace(
            state,
            kind=self._rng.choice(self._kinds),
            progress=0,
            switch_window=window
        )

    # ------------------------------------------------------------------
    # Obstacles
    # ------------------------------------------------------------------

    def spawn_obstacles(
        self,
        state: PatternState,
        elapsed_ms: float,
        profile: DifficultyProfile,
        store: EntityStore
    ) -> Tuple[PatternState, List[Obstacle]]:
        """
        Run the active pattern for one tick.

        Args:
            state: Current pattern state.
            elapsed_ms: Session time of this tick.
            profile: Difficulty parameters for this tick.
            store: Entity store; read for snapshots, used for id allocation.

        Returns:
            (new state, obstacles to append). The list is empty when the
            pattern is cooling down, the roll failed or placement failed.
        """
        kind = state.kind
        tuning = self._patterns.get(kind.value)

        # Room needed for the whole group so the store cap never splits it
        reserve = {PatternKind.CORRIDOR: 1, PatternKind.CLUSTER: 2}.get(kind, 0)
        if store.obstacle_count >= profile.max_obstacles - reserve:
            return state, []
        if not _cooled_down(state.last_obstacle_ms, elapsed_ms, tuning.cooldown_ms):
            return state, []
        if not self._rng.chance(profile.obstacle_chance * tuning.chance_multiplier):
            return state, []

        if kind is PatternKind.WAVE:
            placed = self._spawn_wave(state, profile, store)
        elif kind is PatternKind.CORRIDOR:
            placed = self._spawn_corridor(profile, store)
        elif kind is PatternKind.CLUSTER:
            placed = self._spawn_cluster(profile, store)
        else:
            placed = self._spawn_random(profile, store)

        if not placed:
            return state, []

        state = replace(state, last_obstacle_ms=elapsed_ms)
        if kind is PatternKind.WAVE:
            state = replace(state, progress=state.progress + 1)
        return state, placed

    def _place(
        self,
        x: float,
        proposed_y: float,
        profile: DifficultyProfile,
        obstacles: List[Obstacle],
        store: EntityStore,
        forced_type: Optional[str] = None
    ) -> Optional[Obstacle]:
        """Create a typed obstacle and solve its position against ``obstacles``."""
        template = self._catalog.create(0, x, proposed_y, profile.level, self._rng, forced_type)
        position = self._solver.find_safe_position(
            (template.x, proposed_y),
            (template.width, template.height),
            obstacles,
            store.tokens,
            PlacementKind.OBSTACLE
        )
        if position is None:
            return None
        return replace(template, x=position[0], y=position[1])

    def _spawn_random(self, profile: DifficultyProfile, store: EntityStore) -> List[Obstacle]:
        params = self._patterns.get("random")
        top = float(params.param("top_margin", 20))
        bottom = float(params.param("bottom_margin", 40))
        proposed_y = self._rng.uniform(top, self._board_height - bottom)

        obstacle = self._place(self._board_width, proposed_y, profile, list(store.obstacles), store)
        return self._commit([obstacle], store)

    def _spawn_wave(
        self,
        state: PatternState,
        profile: DifficultyProfile,
        store: EntityStore
    ) -> List[Obstacle]:
        params = self._patterns.get("wave")
        amplitude = self._board_height * float(params.param("amplitude_fraction", 0.3))
        frequency = float(params.param("frequency", 0.3))
        proposed_y = self._board_height / 2 + math.sin(state.progress * frequency) * amplitude

        obstacle = self._place(self._board_width, proposed_y, profile, list(store.obstacles), store)
        return self._commit([obstacle], store)

    def _spawn_corridor(self, profile: DifficultyProfile, store: EntityStore) -> List[Obstacle]:
        params = self._patterns.get("corridor")
        edge = float(params.param("edge_margin", 60))
        width = profile.corridor_width
        height = self._board_height
        corridor_top = edge + self._rng.random() * max(0.0, height - width - 2 * edge)

        snapshot = list(store.obstacles)
        top = self._place(
            self._board_width,
            self._rng.random() * corridor_top,
            profile,
            snapshot,
            store
        )

        # The bottom search must also keep clear of the top candidate
        if top is not None:
            snapshot.append(top)
        bottom_y = corridor_top + width + self._rng.random() * (height - corridor_top - width)
        bottom = self._place(self._board_width, bottom_y, profile, snapshot, store)

        if top is None or bottom is None:
            return []
        return self._commit([top, bottom], store)

    def _spawn_cluster(self, profile: DifficultyProfile, store: EntityStore) -> List[Obstacle]:
        params = self._patterns.get("cluster")
        top = float(params.param("top_margin", 40))
        bottom = float(params.param("bottom_margin", 80))
        spacing = float(params.param("spacing_x", 60))
        jitter = float(params.param("jitter_y", 60))
        max_placed = int(params.param("max_placed", 3))
        lead_type = params.param("lead_type")
        size = int(params.param("base_size", 2)) + profile.level // int(params.param("levels_per_extra", 3))

        cluster_y = top + self._rng.random() * (self._board_height - bottom - top)
        snapshot = list(store.obstacles)
        placed: List[Obstacle] = []

        for i in range(size):
            if len(placed) >= max_placed:
                break
            obstacle = self._place(
                self._board_width + i * spacing,
                cluster_y + self._rng.centered(jitter),
                profile,
                snapshot,
                store,
                forced_type=lead_type if i == 0 else None
            )
            if obstacle is not None:
                placed.append(obstacle)
                snapshot.append(obstacle)

        return self._commit(placed, store)

    def _commit(self, obstacles: List[Optional[Obstacle]], store: EntityStore) -> List[Obstacle]:
        """Assign real ids to accepted obstacles."""
        return [
            replace(o, id=store.allocate_id())
            for o in obstacles
            if o is not None
        ]

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def spawn_token(
        self,
        state: PatternState,
        elapsed_ms: float,
        profile: DifficultyProfile,
        store: EntityStore
    ) -> Tuple[PatternState, Optional[Token]]:
        """
        Maybe spawn one token at the right edge, independent of the pattern.

        The store snapshot passed in should already contain the obstacles
        accepted this tick so the token keeps clear of them.
        """
        tokens_cfg = self._config.tokens
        if store.token_count >= profile.max_tokens:
            return state, None
        if not self._rng.chance(profile.token_chance):
            return state, None
        if not _cooled_down(state.last_token_ms, elapsed_ms, tokens_cfg.cooldown_ms):
            return state, None

        placement = self._config.placement
        proposed_y = self._rng.uniform(
            placement.token_top_margin,
            self._board_height - placement.token_bottom_margin
        )
        position = self._solver.find_safe_position(
            (self._board_width, proposed_y),
            (tokens_cfg.width, tokens_cfg.height),
            store.obstacles,
            store.tokens,
            PlacementKind.TOKEN
        )
        if position is None:
            return state, None

        token = Token(
            id=store.allocate_id(),
            x=position[0],
            y=position[1],
            width=tokens_cfg.width,
            height=tokens_cfg.height
        )
        return replace(state, last_token_ms=elapsed_ms), token
