"""CLI entry point.

With arguments, runs a single command (``chunkrelay split video.mp4 ./out``);
without, starts the interactive REPL.
"""

import os
import shlex
import sys

from common.logging_config import setup_logging
from cli.commands import close_client
from cli.parser import ParseError, parse_command
from cli.repl import dispatch_command, repl_loop


def main() -> None:
    """Entry point for CLI."""
    args = sys.argv[1:]
    debug = '--debug' in args
    if debug:
        args.remove('--debug')

    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level)

    if args:
        try:
            cmd_obj = parse_command(shlex.join(args))
        except ParseError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        try:
            result = dispatch_command(cmd_obj)
        finally:
            close_client()
        print(result)
        sys.exit(1 if result.startswith("Error") else 0)

    logger.info("CLI starting...")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        close_client()
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
