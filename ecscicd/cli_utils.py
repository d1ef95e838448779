"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
import click
from functools import wraps
from typing import Any

from .domain.operation import RunOutcome
from .render import render_outcome, render_status_table
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)

logger = logging.getLogger("ecscicd")


def standard_command():
    """
    Decorator that provides standard CLI behavior:
    - Results on stdout, logging on stderr
    - RunOutcome printed as its status line, as JSON with --json,
      or as a table with --pretty
    - dict results printed as JSON
    - Consistent error handling and exit codes
    """
    def decorator(func):

        @wraps(func)
        def wrapper(*args, **kwargs):
            as_json = kwargs.get('as_json', False)
            pretty = kwargs.get('pretty', False)

            try:
                result = func(*args, **kwargs)
            except KeyboardInterrupt:
                logger.error("Interrupted by user")
                sys.exit(INTERRUPTED)
            except click.ClickException:
                # Click exceptions already have their exit code
                raise
            except CommandError as e:
                logger.error(str(e))
                if as_json:
                    print(json.dumps({
                        "error": str(e),
                        "type": type(e).__name__,
                        "exit_code": e.exit_code
                    }, ensure_ascii=False), flush=True)
                sys.exit(e.exit_code)
            except Exception as e:
                logger.error(f"Command failed: {e}")
                if as_json:
                    print(json.dumps({
                        "error": str(e),
                        "type": type(e).__name__
                    }, ensure_ascii=False), flush=True)
                sys.exit(get_exit_code_for_exception(e))

            sys.exit(output_result(result, as_json, pretty))

        return wrapper
    return decorator


def output_result(result: Any, as_json: bool = False, pretty: bool = False) -> int:
    """
    Standard output handler for results.

    Returns:
        The exit code the result calls for
    """
    if isinstance(result, RunOutcome):
        if pretty:
            render_outcome(result)
        elif as_json:
            print(json.dumps(result.to_dict(), ensure_ascii=False), flush=True)
        else:
            print(result.status_line, flush=True)
        return result.exit_code if not result.success else SUCCESS
    if isinstance(result, dict):
        if pretty:
            render_status_table(result)
            return SUCCESS
        print(json.dumps(result, indent=2 if not as_json else None, ensure_ascii=False), flush=True)
    return SUCCESS


# Standard options that many commands share
common_options = {
    'json': click.option('--json', 'as_json', is_flag=True,
                         help='Print the result as a JSON object'),
    'pretty': click.option('--pretty', is_flag=True,
                           help='Render a table instead of JSON'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('json')
        def my_command(as_json):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
