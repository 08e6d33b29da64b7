import signal
import asyncio
import logging
from typing import Optional

from hypercorn.config import Config
from hypercorn.asyncio import serve as hypercorn_serve

import profwrap.settings as default_settings

log = logging.getLogger("asgi_server")


def build_config(host: Optional[str] = None, port: Optional[int] = None) -> Config:
    """Returns the Hypercorn config for the wrapped service."""
    config = Config()
    config.bind = [f"{host or default_settings.WEB_SERVER_HOST}:{port or default_settings.WEB_SERVER_PORT}"]
    config.accesslog = "-"
    return config


def _install_shutdown_handlers(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers; Ctrl+C raises instead.
            pass
    if hasattr(signal, "SIGBREAK"):
        signal.signal(signal.SIGBREAK, lambda *_: loop.call_soon_threadsafe(shutdown_event.set))


async def serve(app=None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Serves the wrapped service in the current process until SIGINT/SIGTERM.

    A graceful return lets an enclosing profiler write its output.
    """
    if app is None:
        from profwrap.web.setup import app

    config = build_config(host, port)
    shutdown_event = asyncio.Event()
    _install_shutdown_handlers(shutdown_event)

    log.info(f"Starlette service listening on {', '.join(config.bind)}.")
    await hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
    log.info("Starlette service stopped.")
