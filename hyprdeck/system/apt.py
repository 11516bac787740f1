"""apt/dpkg backed package manager."""

import logging

from hyprdeck.execution import (
    DEFAULT_TIMEOUT,
    INSTALL_TIMEOUT,
    join_command,
    run_command_async,
)
from hyprdeck.orchestration.context import RunContext

from .interfaces import CommandError

_logging = logging.getLogger(__name__)

APT_ENV = "DEBIAN_FRONTEND=noninteractive"


class AptPackageManager:
    def __init__(self, timeout: int = INSTALL_TIMEOUT, use_sudo: bool = True):
        self.timeout = timeout
        self.use_sudo = use_sudo

    def _privileged(self, argv: list[str]) -> str:
        command = f"{APT_ENV} {join_command(argv)}"
        if self.use_sudo:
            return f"sudo {command}"
        return command

    async def install(self, ctx: RunContext, *names: str) -> None:
        if not names:
            return
        command = self._privileged(
            ["apt-get", "install", "-y", "--no-install-recommends", *names]
        )
        output, returncode = await run_command_async(
            command, timeout=self.timeout, debug=ctx.debug
        )
        if returncode != 0:
            raise CommandError(command, returncode, output)

    async def remove(self, ctx: RunContext, *names: str) -> None:
        if not names:
            return
        command = self._privileged(["apt-get", "remove", "-y", *names])
        output, returncode = await run_command_async(
            command, timeout=self.timeout, debug=ctx.debug
        )
        if returncode != 0:
            raise CommandError(command, returncode, output)

    async def installed_version(self, ctx: RunContext, name: str) -> str | None:
        command = join_command(
            ["dpkg-query", "-W", "-f=${db:Status-Status} ${Version}", name]
        )
        output, returncode = await run_command_async(
            command, timeout=DEFAULT_TIMEOUT, debug=ctx.debug
        )
        if returncode != 0:
            return None
        return parse_dpkg_status(output)

    async def is_installed(self, ctx: RunContext, name: str) -> bool:
        return await self.installed_version(ctx, name) is not None


def parse_dpkg_status(output: str) -> str | None:
    """Return the version from dpkg-query output if the package is installed.

        >>> parse_dpkg_status("installed 0.45.2-1")
        '0.45.2-1'
        >>> parse_dpkg_status("config-files 1.0") is None
        True
    """
    parts = output.strip().split(None, 1)
    if len(parts) != 2 or parts[0] != "installed":
        return None
    return parts[1].strip() or None
