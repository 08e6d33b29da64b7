"""
Entry point for the wrapped service when run as its own process.

The profiled child runs this module under the interpreter's profiler. It never
looks at the profiling toggle itself, so it cannot start a nested session.
"""
import asyncio
import setproctitle

import profwrap.settings as default_settings
from profwrap.log import setup_logging
from profwrap.web.server import serve


def main() -> None:
    setproctitle.setproctitle(default_settings.SERVICE_PROCESS_TITLE)
    setup_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
