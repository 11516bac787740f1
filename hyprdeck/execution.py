"""Async command execution utilities."""

import asyncio
import logging
import shlex
from typing import Sequence, Tuple

DEFAULT_TIMEOUT = 30
SERVICE_TIMEOUT = 60
INSTALL_TIMEOUT = 600

_logging = logging.getLogger(__name__)


def join_command(argv: Sequence[str]) -> str:
    """Quote an argument vector into a single shell command line."""
    return shlex.join(list(argv))


async def run_command_async(
    command: str, timeout: int = DEFAULT_TIMEOUT, debug: bool = False
) -> Tuple[str, int]:
    """Run a command asynchronously and return output and return code.

    Failures to spawn and timeouts are reported as a non-zero return code
    with the reason as output; the call itself never raises for them.
    """
    process = None
    try:
        if debug:
            _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1

        output = stdout.decode(errors="replace").strip()
        err_text = stderr.decode(errors="replace").strip()
        if err_text and debug:
            _logging.debug(f"stderr: {err_text}")
        returncode = process.returncode if process.returncode is not None else 1
        if returncode != 0 and not output:
            output = err_text
        return output, returncode
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return f"Error: {e}", 1
