#!/usr/bin/env python3
"""
game_client.py

Top-down pygame view of the Crux world. Reads snapshots from the shared
state store, moves the local ship from keyboard input and reports its
position through the throttle.
"""

import logging
from typing import Optional, Sequence, Tuple

import pygame

from .config import ClientConfig, configure_logging, load_client_config
from .connection import ConnectionManager
from .constants import RENDER_FPS, SCREEN_HEIGHT, SCREEN_WIDTH, WORLD_SCALE
from .data_models import GameState, Planet, Position
from .movement import MovementInput, ShipEngine
from .state_store import GameStateStore, StoreSnapshot
from .throttle import PositionThrottle

logger = logging.getLogger(__name__)

BACKGROUND = (10, 10, 18)
WHITE = (255, 255, 255)
GREY = (200, 200, 200)
RED = (255, 50, 50)
YELLOW = (255, 220, 0)
SHIP_COLOR = (0, 255, 200)
PLAYER_COLOR = (255, 140, 0)


def read_controls(pressed) -> MovementInput:
    return MovementInput(
        forward=bool(pressed[pygame.K_w]),
        backward=bool(pressed[pygame.K_s]),
        left=bool(pressed[pygame.K_a]),
        right=bool(pressed[pygame.K_d]),
    )


class CruxClient:
    def __init__(self, config: ClientConfig):
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Crux")

        self.store = GameStateStore()
        self.view = self.store.view()
        self.net = ConnectionManager(config.server_url, self.store)

        self.engine = ShipEngine()
        self.throttle = PositionThrottle(self.net.send_position)
        self.ship_position: Optional[Position] = None

        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)
        self.large_font = pygame.font.Font(None, 40)

    def run(self):
        """The main client execution loop."""
        self.net.connect()

        running = True
        while running:
            dt = self.clock.tick(RENDER_FPS) / 1000.0

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                if event.type == pygame.KEYDOWN and event.key == pygame.K_r:
                    logger.info("Reconnect requested")
                    self.net.reconnect()

            snapshot = self.view.snapshot()
            self._step_ship(snapshot.game_state, read_controls(pygame.key.get_pressed()), dt)
            self._draw(snapshot)

        self.net.shutdown()
        pygame.quit()

    def _step_ship(self, game_state: Optional[GameState], controls: MovementInput, dt: float):
        if game_state is None:
            return

        if self.ship_position is None:
            self.ship_position = game_state.initial_player_location
            self.throttle.reset(self.ship_position)

        self.ship_position, moving = self.engine.step(self.ship_position, controls, dt)
        self.throttle.offer(self.ship_position, moving)

    # ----------------- Rendering -----------------

    def world_to_screen(self, position: Position) -> Tuple[int, int]:
        """Camera follows the ship; world x/z map to screen x/y."""
        center = self.ship_position or Position()
        sx = SCREEN_WIDTH / 2 + (position.x - center.x) * WORLD_SCALE
        sy = SCREEN_HEIGHT / 2 + (position.z - center.z) * WORLD_SCALE
        return int(sx), int(sy)

    def _draw_planet(self, planet: Planet):
        ocean, land, mountain = planet.colors
        center = self.world_to_screen(planet.position)
        radius = max(int(planet.size * WORLD_SCALE), 2)
        pygame.draw.circle(self.screen, (ocean.r, ocean.g, ocean.b), center, radius)
        pygame.draw.circle(self.screen, (land.r, land.g, land.b), center, max(radius * 6 // 10, 1))
        pygame.draw.circle(self.screen, (mountain.r, mountain.g, mountain.b), center, max(radius * 3 // 10, 1))

    def _draw(self, snapshot: StoreSnapshot):
        screen = self.screen
        screen.fill(BACKGROUND)
        game_state = snapshot.game_state

        if game_state is not None:
            for planet in game_state.planets:
                self._draw_planet(planet)

            for player in game_state.players:
                pos = self.world_to_screen(player.position)
                pygame.draw.circle(screen, PLAYER_COLOR, pos, 5)
                name_tag = self.font.render(f"{player.name} (lv {player.level})", True, WHITE)
                screen.blit(name_tag, (pos[0] - name_tag.get_width() // 2, pos[1] - 24))

            # Local ship
            cx, cy = SCREEN_WIDTH // 2, SCREEN_HEIGHT // 2
            pygame.draw.polygon(screen, SHIP_COLOR, [(cx, cy - 12), (cx - 8, cy + 8), (cx + 8, cy + 8)])

        # HUD
        status = "Connected" if snapshot.connected else "Disconnected"
        screen.blit(self.font.render(f"Status: {status}", True, GREY), (10, 10))
        if snapshot.error:
            screen.blit(self.font.render(f"Error: {snapshot.error}", True, RED), (10, 34))

        if game_state is None:
            notice = "Loading game state..." if snapshot.connected else "Connecting to server..."
            text = self.large_font.render(notice, True, YELLOW)
            screen.blit(text, (SCREEN_WIDTH // 2 - text.get_width() // 2, SCREEN_HEIGHT // 2 - 20))
        elif self.ship_position is not None:
            p = self.ship_position
            coords = self.font.render(f"({p.x:.1f}, {p.y:.1f}, {p.z:.1f})", True, GREY)
            screen.blit(coords, (10, 58))

        instr = self.font.render("W/S = Thrust | A/D = Strafe | R = Reconnect | Esc = Quit", True, GREY)
        screen.blit(instr, (10, SCREEN_HEIGHT - 30))

        pygame.display.flip()


def main(argv: Optional[Sequence[str]] = None):
    config = load_client_config(argv)
    configure_logging(config.log_level)
    CruxClient(config).run()


if __name__ == "__main__":
    main()
