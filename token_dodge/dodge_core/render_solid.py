"""
Solid Renderer
==============

Fast numpy-based rasterizer for draw commands. Used for agent observations
and headless runs, so it needs no display.

Text commands are skipped; sprites are drawn only when the asset is an RGB
numpy array (nearest-neighbour scaled).
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.render import (
    AssetProvider,
    DrawCommand,
    DrawSprite,
    FillCircle,
    FillRect,
    Gradient,
    RenderContext,
    render,
)
from token_dodge.dodge_core.simulation import GameState


class SolidRenderer:
    """
    Renders the board into an RGB array.

    Keeps its own RenderContext so the background is only rebuilt when the
    output size changes.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        assets: Optional[AssetProvider] = None
    ):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
            assets: Image provider; numpy RGB arrays are blitted.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._assets = assets
        self._context = RenderContext()
        self._background_cache: Optional[np.ndarray] = None
        self._background_key: Optional[Gradient] = None

    @property
    def context(self) -> RenderContext:
        return self._context

    def render(self, state: GameState, width: int, height: int) -> np.ndarray:
        """
        Render the game state to an RGB array.

        Args:
            state: State to draw.
            width: Output image width.
            height: Output image height.

        Returns:
            (height, width, 3) uint8 array.
        """
        commands = render(
            state,
            assets=self._assets,
            context=self._context,
            width=width,
            height=height,
            config=self._config,
            hud=False
        )
        return self.rasterize(commands, width, height)

    def rasterize(self, commands: Iterable[DrawCommand], width: int, height: int) -> np.ndarray:
        img = np.zeros((height, width, 3), dtype=np.uint8)
        for cmd in commands:
            if isinstance(cmd, Gradient):
                self._draw_gradient(img, cmd)
            elif isinstance(cmd, FillRect):
                self._fill_rect(img, cmd.x, cmd.y, cmd.width, cmd.height, cmd.color)
            elif isinstance(cmd, FillCircle):
                self._fill_circle(img, cmd)
            elif isinstance(cmd, DrawSprite):
                self._draw_sprite(img, cmd)
        return img

    def _draw_gradient(self, img: np.ndarray, cmd: Gradient) -> None:
        # Same Gradient object means same pixels
        if self._background_key is not cmd or self._background_cache is None:
            w = max(1, int(round(cmd.width)))
            h = max(1, int(round(cmd.height)))
            xs = np.arange(w, dtype=np.float32)[None, :]
            ys = np.arange(h, dtype=np.float32)[:, None]
            # Projection onto the top-left -> bottom-right diagonal
            t = (xs * w + ys * h) / float(w * w + h * h)
            positions = [p for p, _ in cmd.stops]
            layers = []
            for channel in range(3):
                values = [c[channel] for _, c in cmd.stops]
                layers.append(np.interp(t, positions, values))
            self._background_cache = np.stack(layers, axis=-1).astype(np.uint8)
            self._background_key = cmd

        x0 = int(cmd.x)
        y0 = int(cmd.y)
        bg = self._background_cache
        h = min(bg.shape[0], img.shape[0] - y0)
        w = min(bg.shape[1], img.shape[1] - x0)
        if h > 0 and w > 0:
            img[y0:y0 + h, x0:x0 + w] = bg[:h, :w]

    @staticmethod
    def _fill_rect(img: np.ndarray, x: float, y: float, w: float, h: float, color) -> None:
        height, width = img.shape[:2]
        x0 = max(0, int(x))
        y0 = max(0, int(y))
        x1 = min(width, int(x + w))
        y1 = min(height, int(y + h))
        if x1 > x0 and y1 > y0:
            img[y0:y1, x0:x1] = color

    @staticmethod
    def _fill_circle(img: np.ndarray, cmd: FillCircle) -> None:
        height, width = img.shape[:2]
        r = cmd.radius
        x0 = max(0, int(cmd.cx - r))
        y0 = max(0, int(cmd.cy - r))
        x1 = min(width, int(cmd.cx + r) + 1)
        y1 = min(height, int(cmd.cy + r) + 1)
        if x1 <= x0 or y1 <= y0:
            return

        yy, xx = np.ogrid[y0:y1, x0:x1]
        dist_sq = (xx - cmd.cx) ** 2 + (yy - cmd.cy) ** 2
        region = img[y0:y1, x0:x1]
        region[dist_sq <= r * r] = cmd.color
        if cmd.outline is not None:
            inner = max(0.0, r - 2.0)
            ring = (dist_sq <= r * r) & (dist_sq > inner * inner)
            region[ring] = cmd.outline

    def _draw_sprite(self, img: np.ndarray, cmd: DrawSprite) -> None:
        sprite = cmd.image
        if not isinstance(sprite, np.ndarray) or sprite.ndim != 3:
            # Unknown image type; mark the box so the entity stays visible
            self._fill_rect(img, cmd.x, cmd.y, cmd.width, cmd.height, (128, 128, 128))
            return

        height, width = img.shape[:2]
        x0 = max(0, int(cmd.x))
        y0 = max(0, int(cmd.y))
        x1 = min(width, int(cmd.x + cmd.width))
        y1 = min(height, int(cmd.y + cmd.height))
        if x1 <= x0 or y1 <= y0:
            return

        sh, sw = sprite.shape[:2]
        rows = ((np.arange(y0, y1) - cmd.y) * sh / cmd.height).astype(np.int64).clip(0, sh - 1)
        cols = ((np.arange(x0, x1) - cmd.x) * sw / cmd.width).astype(np.int64).clip(0, sw - 1)
        img[y0:y1, x0:x1] = sprite[rows[:, None], cols[None, :], :3]
