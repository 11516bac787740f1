"""systemctl backed service manager."""

from hyprdeck.execution import SERVICE_TIMEOUT, join_command, run_command_async
from hyprdeck.orchestration.context import RunContext

from .interfaces import CommandError


class SystemdServiceManager:
    def __init__(self, use_sudo: bool = True, user: bool = False):
        self.use_sudo = use_sudo and not user
        self.user = user

    def _command(self, *args: str) -> str:
        argv = ["systemctl"]
        if self.user:
            argv.append("--user")
        argv.extend(args)
        command = join_command(argv)
        if self.use_sudo and args[0] not in ("is-enabled", "is-active"):
            return f"sudo {command}"
        return command

    async def _run(self, ctx: RunContext, *args: str) -> None:
        command = self._command(*args)
        output, returncode = await run_command_async(
            command, timeout=SERVICE_TIMEOUT, debug=ctx.debug
        )
        if returncode != 0:
            raise CommandError(command, returncode, output)

    async def _query(self, ctx: RunContext, *args: str) -> bool:
        _, returncode = await run_command_async(
            self._command(*args), timeout=SERVICE_TIMEOUT, debug=ctx.debug
        )
        return returncode == 0

    async def enable(self, ctx: RunContext, service: str) -> None:
        await self._run(ctx, "enable", service)

    async def disable(self, ctx: RunContext, service: str) -> None:
        await self._run(ctx, "disable", service)

    async def start(self, ctx: RunContext, service: str) -> None:
        await self._run(ctx, "start", service)

    async def stop(self, ctx: RunContext, service: str) -> None:
        await self._run(ctx, "stop", service)

    async def is_enabled(self, ctx: RunContext, service: str) -> bool:
        return await self._query(ctx, "is-enabled", "--quiet", service)

    async def is_active(self, ctx: RunContext, service: str) -> bool:
        return await self._query(ctx, "is-active", "--quiet", service)
