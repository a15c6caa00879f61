"""
Console entry point for ollama-runtime.

Library errors are rendered as a panel with suggestions and mapped to an
exit code, so scripts can tell a misconfiguration from a server that never
came up.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from ollama_runtime.cli.app import app
from ollama_runtime.cli.formatters import format_error_with_suggestions
from ollama_runtime.exceptions import (
    ConfigurationError,
    OllamaRuntimeError,
    ServerStateError,
    StartupTimeoutError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)

EXIT_FAILURE = 1

# Checked in order; the first matching class wins
EXIT_CODES: tuple[tuple[type[OllamaRuntimeError], int], ...] = (
    (ConfigurationError, 2),
    (StartupTimeoutError, 3),
    (ServerStateError, 4),
    (UnsupportedPlatformError, 5),
    (UnsupportedArchitectureError, 5),
)


def exit_code_for(error: OllamaRuntimeError) -> int:
    for error_type, code in EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return EXIT_FAILURE


def main() -> None:
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("ollama_runtime")
    console = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(0)
    except OllamaRuntimeError as e:
        console.print(format_error_with_suggestions(e))
        log.debug("Command failed:", exc_info=True)
        sys.exit(exit_code_for(e))
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
