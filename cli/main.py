"""CLI entry point."""

import os
import sys
from pathlib import Path
from typing import List, Optional

from common.logging_config import setup_logging
from cli.commands import DEFAULT_CONFIG_PATH, use_config
from cli.repl import repl_loop


def _pop_option(argv: List[str], flag: str) -> Optional[str]:
    """Remove '<flag> <value>' from argv and return the value."""
    if flag not in argv:
        return None
    position = argv.index(flag)
    if position + 1 >= len(argv):
        raise SystemExit(f"{flag} requires a value")
    value = argv[position + 1]
    del argv[position:position + 2]
    return value


def main() -> None:
    """Entry point for CLI. Options: --debug, --config <path>."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'WARNING')

    logger = setup_logging('cli', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    config_path = _pop_option(sys.argv, '--config') or os.getenv('COURIER_CLI_CONFIG')
    use_config(Path(config_path) if config_path else DEFAULT_CONFIG_PATH)
    logger.info(f"Courier CLI starting with config {config_path or DEFAULT_CONFIG_PATH}")

    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Courier CLI exiting")


if __name__ == "__main__":
    main()
