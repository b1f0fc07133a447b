"""Standalone entrypoint. Loads config, runs the IRC plugin against a logging host."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from wopr_irc import __version__
from wopr_irc.adapters.irc import IRCPlugin
from wopr_irc.config import load_config_with_env
from wopr_irc.host import StandaloneHost

# Standard-library loggers routed through loguru
_INTERCEPTED_LIBRARIES = ["asyncio", "pydle", "pydle.client", "pydle.connection", "pydle.features.ircv3.cap"]

_LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.patch(
            lambda r: r.update(
                name=record.name,
                function=record.funcName,
                line=record.lineno,
            ),
        ).opt(exception=record.exc_info).log(level, record.getMessage())


def _intercept_logging(level: str) -> None:
    """Route standard-library logs to loguru."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for lib in _INTERCEPTED_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def setup_logging(verbose: bool = False, log_file: str | Path | None = None) -> None:
    """Configure loguru. Replace default logging.
    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO.
    With log_file, also write a rotating file."""
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT)
    if log_file:
        logger.add(str(log_file), level=level, format=_LOG_FORMAT, rotation="10 MB", retention=5)
    _intercept_logging(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="WOPR IRC plugin (standalone)")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entrypoint."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    config = load_config_with_env(args.config)
    if config.get("log_file"):
        setup_logging(args.verbose, config["log_file"])
    logger.info("Config loaded from {}", args.config)

    asyncio.run(_run(args.config, config))


async def _reload(plugin: IRCPlugin, host: StandaloneHost, config_path: Path) -> None:
    """Full shutdown and re-init with freshly loaded config."""
    config = load_config_with_env(config_path)
    await plugin.shutdown()
    host.config = config
    await plugin.init(host)
    logger.info("Config reloaded (SIGHUP)")


async def _run(config_path: Path, config: dict[str, Any]) -> None:
    """Async run loop. Start the plugin and wait for a stop signal."""
    host = StandaloneHost(config=config)
    plugin = IRCPlugin()
    stop = asyncio.Event()
    reloads: set[asyncio.Task] = set()

    def on_sighup() -> None:
        task = asyncio.create_task(_reload(plugin, host, config_path))
        reloads.add(task)
        task.add_done_callback(reloads.discard)

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, stop.set)
    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGHUP, on_sighup)

    await plugin.init(host)
    logger.info("IRC plugin {} started (state: {})", plugin.version, plugin.state.value)

    try:
        await stop.wait()
    finally:
        logger.info("IRC plugin shutting down")
        for task in reloads:
            task.cancel()
        await plugin.shutdown()


if __name__ == "__main__":
    main()
