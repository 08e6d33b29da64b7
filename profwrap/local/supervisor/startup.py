import time
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from .session import ProfileSession

if TYPE_CHECKING:
    from profwrap.local.config import SessionConfig

log = logging.getLogger(__name__)

ServiceStarter = Callable[[], Awaitable[None]]


async def _serve_default() -> None:
    from profwrap.web.server import serve
    await serve()


async def run_profile_session(config: "SessionConfig", session: Optional[ProfileSession] = None) -> Optional[str]:
    """
    Runs one profiling session and absorbs anything it raises.

    :return: The captured report, or None if profiling failed.
    """
    session = session or ProfileSession(config)
    log.info(f"Profiling application for {config.duration_ms} ms...")
    start_time = time.monotonic()
    try:
        return await session.run()
    except Exception as e:
        log.error(f"Profiling session aborted unexpectedly: {e}", exc_info=True)
        return None
    finally:
        log.info(f"Profiling session finished as '{session.state}' after {time.monotonic() - start_time:.2f} seconds.")


async def run_supervisor(config: "SessionConfig", start_service: Optional[ServiceStarter] = None) -> Optional[str]:
    """
    Starts the wrapped service, after one profiling session if enabled.

    The service started here runs in this process and is never profiled.

    :param config: The SessionConfig built at startup.
    :param start_service: Coroutine function starting the service. Defaults to the web server.
    :return: The captured report, if a session produced one.
    """
    start_service = start_service or _serve_default
    report = None

    if config.enabled:
        report = await run_profile_session(config)
        log.info("Restarting service without profiling now")
    else:
        log.debug("Profiling disabled. Starting service immediately.")

    await start_service()
    return report
