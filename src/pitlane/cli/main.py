# src/pitlane/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (which re-arms deadline alerts), then
runs the console REPL in the main thread. Alerts fire from timer threads.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..connectors.notifiers import ConsoleNotifier, LogNotifier
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(settings)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    notifier = ConsoleNotifier() if settings.console_enabled else LogNotifier()
    state = create_initial_state(settings=settings, notifier=notifier)

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not every platform supports SIGTERM handlers.
        logger.debug("SIGTERM handler not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Waiting for deadline alerts only. Press Ctrl+C to stop.")
            try:
                stop_main.wait()
            except KeyboardInterrupt:
                pass
    finally:
        shutdown_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
