"""
Pygame Renderer
===============

Executes draw commands on a pygame surface, for human play.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pygame

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.render import (
    DrawCommand,
    DrawSprite,
    DrawText,
    FillCircle,
    FillRect,
    Gradient,
    RenderContext,
    render,
)
from token_dodge.dodge_core.simulation import GameState
from token_dodge.dodge_core.sprite_loader import SpriteLoader


class PygameRenderer:
    """
    Full renderer using pygame.

    Supports:
    - Sprite-based entities with vector fallbacks
    - Score / lives / level overlay
    - Screen display for human mode
    - RGB array output
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        use_sprites: bool = True,
        sprite_loader: Optional[SpriteLoader] = None
    ):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
            use_sprites: Whether to load and use sprite graphics.
            sprite_loader: Loader to use instead of the default one.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._use_sprites = use_sprites

        if not pygame.get_init():
            pygame.init()
        pygame.font.init()

        self._screen: Optional[pygame.Surface] = None
        self._screen_size: Optional[Tuple[int, int]] = None
        self._fonts: Dict[int, pygame.font.Font] = {}
        self._context = RenderContext()

        # Pre-built gradient surfaces keyed by size
        self._gradient_cache: Dict[Tuple[int, int], pygame.Surface] = {}

        if sprite_loader is None and use_sprites:
            sprite_loader = SpriteLoader()
        self._sprite_loader = sprite_loader

    def _font(self, size: int) -> pygame.font.Font:
        if size not in self._fonts:
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def render(self, state: GameState, width: int, height: int) -> np.ndarray:
        """
        Render to RGB array.

        Returns:
            (height, width, 3) uint8 array.
        """
        surface = pygame.Surface((width, height))
        self._render_to_surface(surface, state)
        array = pygame.surfarray.array3d(surface)
        return np.transpose(array, (1, 0, 2))

    def render_to_screen(
        self,
        state: GameState,
        window_width: Optional[int] = None,
        window_height: Optional[int] = None
    ) -> None:
        """
        Render to pygame window.

        Args:
            state: State to draw.
            window_width: Window width. Board width if None.
            window_height: Window height. Board height if None.
        """
        size = (
            window_width or self._config.board.width,
            window_height or self._config.board.height
        )
        if self._screen is None or self._screen_size != size:
            self._screen = pygame.display.set_mode(size)
            self._screen_size = size
            pygame.display.set_caption("Token Dodge")

        self._render_to_surface(self._screen, state)

    def _render_to_surface(self, surface: pygame.Surface, state: GameState) -> None:
        width, height = surface.get_size()
        assets = self._sprite_loader if self._use_sprites else None
        commands = render(
            state,
            assets=assets,
            context=self._context,
            width=width,
            height=height,
            config=self._config
        )
        self.draw(surface, commands)

    def draw(self, surface: pygame.Surface, commands: Iterable[DrawCommand]) -> None:
        for cmd in commands:
            if isinstance(cmd, Gradient):
                surface.blit(self._gradient_surface(cmd), (int(cmd.x), int(cmd.y)))
            elif isinstance(cmd, FillRect):
                pygame.draw.rect(surface, cmd.color, pygame.Rect(int(cmd.x), int(cmd.y), int(cmd.width), int(cmd.height)))
            elif isinstance(cmd, FillCircle):
                center = (int(cmd.cx), int(cmd.cy))
                pygame.draw.circle(surface, cmd.color, center, int(cmd.radius))
                if cmd.outline is not None:
                    pygame.draw.circle(surface, cmd.outline, center, int(cmd.radius), 2)
            elif isinstance(cmd, DrawSprite):
                size = (max(1, int(cmd.width)), max(1, int(cmd.height)))
                surface.blit(pygame.transform.smoothscale(cmd.image, size), (int(cmd.x), int(cmd.y)))
            elif isinstance(cmd, DrawText):
                text = self._font(cmd.size).render(cmd.text, True, cmd.color)
                if cmd.centered:
                    rect = text.get_rect(center=(int(cmd.x), int(cmd.y)))
                else:
                    rect = text.get_rect(topleft=(int(cmd.x), int(cmd.y)))
                surface.blit(text, rect)

    def _gradient_surface(self, cmd: Gradient) -> pygame.Surface:
        key = (max(1, int(cmd.width)), max(1, int(cmd.height)))
        if key not in self._gradient_cache:
            w, h = key
            xs = np.arange(w, dtype=np.float32)[:, None]
            ys = np.arange(h, dtype=np.float32)[None, :]
            t = (xs * w + ys * h) / float(w * w + h * h)
            positions = [p for p, _ in cmd.stops]
            channels = [np.interp(t, positions, [c[i] for _, c in cmd.stops]) for i in range(3)]
            # surfarray expects (width, height, 3)
            pixels = np.stack(channels, axis=-1).astype(np.uint8)
            self._gradient_cache[key] = pygame.surfarray.make_surface(pixels)
        return self._gradient_cache[key]

    def handle_events(self) -> bool:
        """Handle pygame events. Returns False if quit requested."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False
        return True

    def close(self) -> None:
        """Clean up pygame resources."""
        self._gradient_cache.clear()
        self._fonts.clear()
        if self._screen is not None:
            self._screen = None
