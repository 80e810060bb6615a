"""
Frame Composition
=================

Turns a GameState into a flat list of draw commands. Nothing here touches a
display: backends (SolidRenderer, PygameRenderer) execute the commands.

Images come from an asset provider (``get(key) -> image | None``). Any
missing image is replaced by a vector fallback, so a frame always renders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.session import SessionPhase
from token_dodge.dodge_core.simulation import GameState

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

PLAYER_KEY = "player"
TOKEN_KEY = "token"

BACKGROUND_STOPS: Tuple[Tuple[float, Color], ...] = (
    (0.0, (249, 115, 22)),     # Orange
    (0.5, (234, 179, 8)),      # Yellow
    (1.0, (249, 115, 22)),
)
PLAYER_COLOR: Color = (31, 41, 55)
TOKEN_COLOR: Color = (251, 191, 36)
TOKEN_RIM_COLOR: Color = (245, 158, 11)
LABEL_COLOR: Color = (255, 255, 255)
TOKEN_MARK_COLOR: Color = (0, 0, 0)


@dataclass(frozen=True)
class Gradient:
    """Diagonal linear gradient from top-left to bottom-right."""
    x: float
    y: float
    width: float
    height: float
    stops: Tuple[Tuple[float, Color], ...]


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: Color


@dataclass(frozen=True)
class FillCircle:
    cx: float
    cy: float
    radius: float
    color: Color
    outline: Optional[Color] = None


@dataclass(frozen=True)
class DrawSprite:
    """Blit ``image`` (as returned by the asset provider) scaled to the box."""
    key: str
    image: Any
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class DrawText:
    text: str
    x: float
    y: float
    color: Color
    size: int = 20
    centered: bool = False


DrawCommand = Union[Gradient, FillRect, FillCircle, DrawSprite, DrawText]


class AssetProvider(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...


class NoAssets:
    """Asset provider with no images; every entity uses its fallback."""

    def get(self, key: str) -> Optional[Any]:
        return None


class RenderContext:
    """
    Caller-owned render cache.

    Holds the background command, rebuilt only when the output size changes.
    """

    def __init__(self):
        self._background: Optional[Gradient] = None
        self._size: Optional[Tuple[int, int]] = None
        self.rebuilds = 0
        self.frames = 0

    def background(self, width: int, height: int) -> Gradient:
        if self._background is None or self._size != (width, height):
            self._background = Gradient(0, 0, width, height, BACKGROUND_STOPS)
            self._size = (width, height)
            self.rebuilds += 1
        return self._background


def obstacle_asset_key(obstacle_type: str) -> str:
    return f"obstacle_{obstacle_type}"


def _sprite_or_none(assets: AssetProvider, key: str) -> Optional[Any]:
    try:
        return assets.get(key)
    except Exception:
        logger.debug("Asset %s unavailable, using fallback", key, exc_info=True)
        return None


def render(
    state: GameState,
    assets: Optional[AssetProvider] = None,
    context: Optional[RenderContext] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    config: Optional[GameConfig] = None,
    hud: bool = True
) -> List[DrawCommand]:
    """
    Compose one frame.

    Args:
        state: State to draw. Not modified.
        assets: Image provider. No images if None.
        context: Render cache. A throwaway one if None.
        width: Output width in pixels. Board width if None.
        height: Output height in pixels. Board height if None.
        config: Game configuration. Uses default if None.
        hud: Include score / lives / level text.

    Returns:
        Draw commands in painting order (background first).
    """
    if config is None:
        config = get_config()
    if assets is None:
        assets = NoAssets()
    if context is None:
        context = RenderContext()

    width = width or config.board.width
    height = height or config.board.height
    sx = width / config.board.width
    sy = height / config.board.height
    context.frames += 1

    commands: List[DrawCommand] = [context.background(width, height)]

    player = state.player
    image = _sprite_or_none(assets, PLAYER_KEY)
    box = (player.x * sx, player.y * sy, player.width * sx, player.height * sy)
    if image is not None:
        commands.append(DrawSprite(PLAYER_KEY, image, *box))
    else:
        commands.append(FillRect(*box, PLAYER_COLOR))

    token_image = _sprite_or_none(assets, TOKEN_KEY)
    text_scale = min(sx, sy)
    for token in state.tokens:
        box = (token.x * sx, token.y * sy, token.width * sx, token.height * sy)
        if token_image is not None:
            commands.append(DrawSprite(TOKEN_KEY, token_image, *box))
            continue
        cx = box[0] + box[2] / 2
        cy = box[1] + box[3] / 2
        commands.append(FillCircle(cx, cy, box[2] / 2, TOKEN_COLOR, TOKEN_RIM_COLOR))
        commands.append(DrawText("$", cx, cy, TOKEN_MARK_COLOR, size=max(8, int(16 * text_scale)), centered=True))

    # One lookup per type per frame
    obstacle_images: Dict[str, Optional[Any]] = {}
    for obstacle in state.obstacles:
        if obstacle.type not in obstacle_images:
            obstacle_images[obstacle.type] = _sprite_or_none(assets, obstacle_asset_key(obstacle.type))
        image = obstacle_images[obstacle.type]
        box = (obstacle.x * sx, obstacle.y * sy, obstacle.width * sx, obstacle.height * sy)
        if image is not None:
            commands.append(DrawSprite(obstacle_asset_key(obstacle.type), image, *box))
            continue
        type_cfg = config.get_obstacle_type(obstacle.type)
        commands.append(FillRect(*box, type_cfg.color))
        commands.append(DrawText(
            type_cfg.label,
            box[0] + box[2] / 2,
            box[1] + box[3] / 2,
            LABEL_COLOR,
            size=max(8, int(14 * text_scale)),
            centered=True
        ))

    if hud:
        commands.extend(_hud(state, width, height, text_scale))

    return commands


def _hud(state: GameState, width: int, height: int, scale: float) -> List[DrawCommand]:
    size = max(10, int(22 * scale))
    commands: List[DrawCommand] = [
        DrawText(f"Score: {state.score}", 10 * scale, 10 * scale, LABEL_COLOR, size=size),
        DrawText(f"Lives: {state.lives}", 10 * scale, 10 * scale + size, LABEL_COLOR, size=size),
        DrawText(f"Level: {state.level}", width - 110 * scale, 10 * scale, LABEL_COLOR, size=size),
    ]
    if state.phase is SessionPhase.FINISHED:
        commands.append(DrawText("GAME OVER", width / 2, height / 2, LABEL_COLOR, size=size * 2, centered=True))
    elif state.phase is SessionPhase.WAITING:
        commands.append(DrawText("Press SPACE to start", width / 2, height / 2, LABEL_COLOR, size=size, centered=True))
    return commands
