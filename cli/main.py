"""Shell entry point."""

import asyncio
import sys
import os

from common.logging_config import setup_logging
from cli.repl import repl_loop


def main() -> None:
    """Entry point for the AirDrop shell.

    An optional positional argument is opened as a share link on startup.
    """
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_logging('cli', log_level=log_level)
    for component in ('bundlestore', 'offline_cache', 'transfer', 'common'):
        setup_logging(component, log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    initial_locator = sys.argv[1] if len(sys.argv) > 1 else None

    logger.info("Shell starting...")
    try:
        asyncio.run(repl_loop(initial_locator))
    except Exception as e:
        logger.error(f"Shell error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shell exiting")


if __name__ == "__main__":
    main()
