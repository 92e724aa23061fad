"""
config.py: Runtime configuration for the client and server entry points.

Precedence: command-line flag > environment variable > constants.py default.
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .constants import DEFAULT_SERVER_URL, SERVER_HOST, SERVER_PORT, SERVER_TICK_RATE

ENV_SERVER_URL = "CRUX_SERVER_URL"
ENV_HOST = "CRUX_HOST"
ENV_PORT = "CRUX_PORT"
ENV_LOG_LEVEL = "CRUX_LOG_LEVEL"

LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


@dataclass
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    log_level: str = "INFO"


@dataclass
class ServerConfig:
    host: str = SERVER_HOST
    port: int = SERVER_PORT
    tick_rate: int = SERVER_TICK_RATE
    seed: Optional[int] = None
    log_level: str = "INFO"


def _env(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def load_client_config(argv: Optional[Sequence[str]] = None,
                       environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    env = _env(environ)
    parser = argparse.ArgumentParser(prog="crux-client", description="Crux game client")
    parser.add_argument("--url", default=env.get(ENV_SERVER_URL, DEFAULT_SERVER_URL),
                        help="WebSocket URL of the game server")
    parser.add_argument("--log-level", default=env.get(ENV_LOG_LEVEL, "INFO"))
    args = parser.parse_args(argv)
    return ClientConfig(server_url=args.url, log_level=args.log_level.upper())


def load_server_config(argv: Optional[Sequence[str]] = None,
                       environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    env = _env(environ)
    parser = argparse.ArgumentParser(prog="crux-server", description="Crux reference game server")
    parser.add_argument("--host", default=env.get(ENV_HOST, SERVER_HOST))
    parser.add_argument("--port", type=int, default=int(env.get(ENV_PORT, SERVER_PORT)))
    parser.add_argument("--tick-rate", type=int, default=SERVER_TICK_RATE,
                        help="snapshots broadcast per second")
    parser.add_argument("--seed", type=int, default=None, help="world generation seed")
    parser.add_argument("--log-level", default=env.get(ENV_LOG_LEVEL, "INFO"))
    args = parser.parse_args(argv)
    if args.tick_rate <= 0:
        parser.error("--tick-rate must be positive")
    return ServerConfig(host=args.host, port=args.port, tick_rate=args.tick_rate,
                        seed=args.seed, log_level=args.log_level.upper())


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
