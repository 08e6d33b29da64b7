import sys
import asyncio
import logging
import setproctitle
from typing import List, Optional

import profwrap.settings as default_settings
from profwrap.log.setup import setup_logging
from profwrap.local.config import load_session_config
from profwrap.local.supervisor import run_supervisor

log = logging.getLogger("console")


def main(argv: Optional[List[str]] = None) -> None:
    """The main entry point: profile once if requested, then serve."""
    args = sys.argv[1:] if argv is None else list(argv)

    if "--verbose" in args:
        default_settings.VERBOSE_LOGGING = True
        args.remove("--verbose")

    setproctitle.setproctitle(default_settings.SUPERVISOR_PROCESS_TITLE)
    setup_logging(logging.DEBUG if default_settings.VERBOSE_LOGGING else logging.INFO)
    if args:
        log.warning(f"Ignoring unknown arguments: {' '.join(args)}")

    # The environment is read exactly once, here.
    config = load_session_config()
    log.debug(f"Session configuration: {config}")

    try:
        asyncio.run(run_supervisor(config))
    except KeyboardInterrupt:
        log.warning("Supervisor interrupted by user.")


if __name__ == "__main__":
    main()
