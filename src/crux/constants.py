"""
constants.py: Centralized configuration for protocol, network and client settings.
"""

# -------- Network & Server Config --------
DEFAULT_SERVER_URL = "ws://localhost:8080"
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8080
OPEN_TIMEOUT = 5.0              # seconds to wait for the websocket handshake
CLOSE_TIMEOUT = 2.0             # seconds to wait for the closing handshake

# Snapshot broadcast
SERVER_TICK_RATE = 10           # Snapshots broadcast per second
WELCOME_MESSAGE = "Welcome to Crux Server!"

# -------- Wire Format --------
POSITION_SIZE = 12              # 3 x f32
PLANET_RECORD_SIZE = 26         # f32 size, 3 x (u8, u8, u8), u8 module type, position
PLAYER_MIN_RECORD_SIZE = 28     # u32 id, u64 name length, u32 level, position

# -------- Outbound Throttle --------
MIN_SEND_DISTANCE = 0.01        # world units
MIN_SEND_INTERVAL = 0.1         # seconds

# -------- World Generation (reference server) --------
PLANET_COUNT = 10
PLANET_RING_RADIUS = 500.0
PLANET_RING_JITTER = 200.0
PLANET_MIN_SIZE = 50.0
PLANET_MAX_SIZE = 150.0
PLANET_MAX_HEIGHT = 100.0       # planets spread over y in [-h, h)
MODULE_TYPE_COUNT = 5
DEFAULT_PLAYER_LEVEL = 1

# -------- Client Movement & Rendering --------
SHIP_SPEED = 50.0               # world units / second
SCREEN_WIDTH = 1024
SCREEN_HEIGHT = 768
RENDER_FPS = 60
WORLD_SCALE = 0.4               # screen pixels per world unit
