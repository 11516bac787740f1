"""Read-only host inspection used by preflight and verification."""

import asyncio
import logging
import platform
import re
import shutil
import socket
from pathlib import Path

from hyprdeck.execution import DEFAULT_TIMEOUT, run_command_async

_logging = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")
APT_SOURCES = Path("/etc/apt/sources.list")
APT_SOURCES_DIR = Path("/etc/apt/sources.list.d")

GPU_VENDOR_PATTERNS = {
    "nvidia": re.compile(r"nvidia", re.IGNORECASE),
    "amd": re.compile(r"\b(amd|ati|radeon)\b", re.IGNORECASE),
    "intel": re.compile(r"\bintel\b", re.IGNORECASE),
}


def parse_os_release(text: str) -> dict[str, str]:
    """Parse /etc/os-release style KEY=value lines."""
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key] = value.strip().strip('"').strip("'")
    return values


def parse_gpu_vendors(lspci_output: str) -> list[str]:
    """Return GPU vendors named in lspci display-controller lines."""
    vendors = []
    for line in lspci_output.splitlines():
        if not re.search(r"VGA compatible controller|3D controller|Display controller", line):
            continue
        for vendor, pattern in GPU_VENDOR_PATTERNS.items():
            if pattern.search(line) and vendor not in vendors:
                vendors.append(vendor)
    return vendors


class HostProbe:
    def __init__(self, os_release: Path = OS_RELEASE, root: Path = Path("/")):
        self.os_release = os_release
        self.root = root

    def os_info(self) -> dict[str, str]:
        try:
            return parse_os_release(self.os_release.read_text())
        except OSError as e:
            _logging.debug(f"Cannot read {self.os_release}: {e}")
            return {}

    def kernel_version(self) -> str:
        return platform.release()

    def hostname(self) -> str:
        return socket.gethostname()

    def disk_available(self, path: Path | None = None) -> int:
        return shutil.disk_usage(path or self.root).free

    def command_exists(self, name: str) -> bool:
        return shutil.which(name) is not None

    async def gpu_vendors(self, debug: bool = False) -> list[str]:
        if not self.command_exists("lspci"):
            return []
        output, returncode = await run_command_async("lspci", DEFAULT_TIMEOUT, debug)
        if returncode != 0:
            return []
        return parse_gpu_vendors(output)

    async def can_connect(self, host: str, port: int = 443, timeout: float = 5.0) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            _logging.debug(f"Connection to {host}:{port} failed: {e}")
            return False
        writer.close()
        await writer.wait_closed()
        return True

    def apt_source_lines(self) -> list[str]:
        """Active lines from sources.list, sources.list.d/*.list and deb822 files."""
        files = [APT_SOURCES] if APT_SOURCES.is_file() else []
        if APT_SOURCES_DIR.is_dir():
            files.extend(sorted(APT_SOURCES_DIR.glob("*.list")))
            files.extend(sorted(APT_SOURCES_DIR.glob("*.sources")))
        lines = []
        for path in files:
            try:
                text = path.read_text()
            except OSError:
                continue
            lines.extend(
                line.strip()
                for line in text.splitlines()
                if line.strip() and not line.strip().startswith("#")
            )
        return lines
