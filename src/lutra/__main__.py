"""Entry point for `python -m lutra`."""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from typing import Any, Callable

from dotenv import load_dotenv

from lutra.adapters.base import PlatformAdapter
from lutra.config import RelayConfig, RelaySettings

log = logging.getLogger("lutra")

AdapterFactory = Callable[..., PlatformAdapter]


def load_factory(path: str) -> AdapterFactory:
    """Resolve a ``module:attribute`` path to an adapter factory."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Adapter path must look like 'module:factory', got {path!r}")
    module = importlib.import_module(module_name)
    factory: Any = getattr(module, attr)
    if not callable(factory):
        raise TypeError(f"{path} is not callable")
    return factory


def build_adapters(config: RelayConfig, settings: RelaySettings) -> dict[str, PlatformAdapter]:
    adapters: dict[str, PlatformAdapter] = {}
    for name, platform in config.platforms.items():
        if not platform.adapter:
            raise ValueError(f"Platform {name!r} has no adapter configured")
        factory = load_factory(platform.adapter)
        adapters[name] = factory(name, platform, queue_size=settings.ADAPTER_QUEUE_SIZE)
        log.info("Adapter for %s: %s", name, platform.adapter)
    return adapters


async def run(config: RelayConfig, settings: RelaySettings) -> None:
    from lutra.adapters.lookup import UserLookup
    from lutra.relay.service import RelayService

    lookup = None
    if settings.LOOKUP_BASE_URL:
        lookup = UserLookup(settings.LOOKUP_BASE_URL, timeout=settings.LOOKUP_TIMEOUT)

    service = RelayService(
        config,
        build_adapters(config, settings),
        lookup=lookup,
        inbox_size=settings.INBOX_SIZE,
        outbox_size=settings.OUTBOX_SIZE,
        send_timeout=settings.SEND_TIMEOUT,
        lookup_timeout=settings.LOOKUP_TIMEOUT,
    )
    await service.start()
    try:
        await asyncio.Event().wait()
    finally:
        await service.stop()
        if lookup is not None:
            await lookup.close()


def main() -> None:
    # Load .env from canonical locations before anything else.
    load_dotenv("config/.env")
    load_dotenv()

    from lutra.config import find_env_file, get_settings, load_relay_config

    try:
        settings = get_settings()
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        log.error("Configuration error: %s", e)
        sys.exit(1)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    env_file = find_env_file()
    if env_file is None:
        log.info("No .env file found, using process environment only.")
    else:
        log.info("Loaded environment from %s", env_file)

    try:
        config = load_relay_config(settings.RELAY_CONFIG_PATH)
    except FileNotFoundError as e:
        log.error("Relay configuration not found: %s", e.filename)
        log.error("Copy config/relay.example.json to %s and fill it in.", settings.RELAY_CONFIG_PATH)
        sys.exit(1)
    except Exception as e:
        log.error("Relay configuration error: %s", e)
        sys.exit(1)

    log.info("Starting Lutra Relay...")
    for name, platform in config.platforms.items():
        log.info("%s -> %s", name, ", ".join(platform.relay_to) or "(nothing)")

    try:
        asyncio.run(run(config, settings))
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down.")
    except (ValueError, TypeError, ImportError) as e:
        log.error("Could not build adapters: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
