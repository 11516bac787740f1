"""One-line-style APT sources.list parsing and editing.

Comments, blanks and untouched entries are kept verbatim so an edited
file differs from the original only where an entry changed.
"""

import re
from dataclasses import dataclass, field, replace

from hyprdeck.errors import ValidationError

ENTRY_LINE = re.compile(r"^(deb|deb-src)\s+(\[[^\]]*\]\s+)?(\S+)\s+(\S+)\s*(.*)$")

NON_FREE_COMPONENTS = ("non-free", "non-free-firmware")


@dataclass(frozen=True)
class SourceEntry:
    type: str
    uri: str
    suite: str
    components: tuple[str, ...] = ()
    options: str = ""
    raw: str = field(default="", compare=False, repr=False)

    @classmethod
    def parse(cls, line: str) -> "SourceEntry | None":
        """Parse an entry line, or return None for comments and blanks."""
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return None
        match = ENTRY_LINE.match(stripped)
        if match is None:
            raise ValidationError(f"malformed sources line: {stripped}")
        kind, options, uri, suite, rest = match.groups()
        rest = rest.split("#", 1)[0]
        return cls(kind, uri, suite, tuple(rest.split()), (options or "").strip(), raw=line)

    def render(self) -> str:
        if self.raw:
            return self.raw
        parts = [self.type]
        if self.options:
            parts.append(self.options)
        parts.extend([self.uri, self.suite, *self.components])
        return " ".join(parts)

    def with_components(self, *components: str) -> "SourceEntry":
        added = tuple(c for c in components if c not in self.components)
        if not added:
            return self
        return replace(self, components=self.components + added, raw="")

    def same_source(self, other: "SourceEntry") -> bool:
        return (self.uri, self.suite) == (other.uri, other.suite)


@dataclass
class SourcesList:
    lines: list[str | SourceEntry] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "SourcesList":
        lines: list[str | SourceEntry] = []
        for line in text.splitlines():
            entry = SourceEntry.parse(line)
            lines.append(entry if entry is not None else line)
        return cls(lines)

    def render(self) -> str:
        rendered = [line.render() if isinstance(line, SourceEntry) else line for line in self.lines]
        return "\n".join(rendered) + "\n" if rendered else ""

    def entries(self) -> list[SourceEntry]:
        return [line for line in self.lines if isinstance(line, SourceEntry)]

    def has_component(self, component: str) -> bool:
        return any(component in e.components for e in self.entries() if e.type == "deb")

    def has_deb_src(self) -> bool:
        return any(e.type == "deb-src" for e in self.entries())

    def add_component(self, *components: str) -> int:
        """Add components to every entry carrying ``main``; returns entries changed."""
        changed = 0
        for index, line in enumerate(self.lines):
            if isinstance(line, SourceEntry) and "main" in line.components:
                updated = line.with_components(*components)
                if updated != line:
                    self.lines[index] = updated
                    changed += 1
        return changed

    def enable_deb_src(self) -> int:
        """Add a deb-src line after each deb line without one; returns lines added."""
        sources = [e for e in self.entries() if e.type == "deb-src"]
        added = 0
        result: list[str | SourceEntry] = []
        for line in self.lines:
            result.append(line)
            if isinstance(line, SourceEntry) and line.type == "deb":
                if not any(line.same_source(s) for s in sources):
                    result.append(replace(line, type="deb-src", raw=""))
                    added += 1
        self.lines = result
        return added

    def summary(self) -> dict:
        entries = self.entries()
        return {
            "entries": len(entries),
            "suites": sorted({e.suite for e in entries}),
            "has_main": self.has_component("main"),
            "has_contrib": self.has_component("contrib"),
            "has_non_free": self.has_component("non-free"),
            "has_non_free_firmware": self.has_component("non-free-firmware"),
            "has_deb_src": self.has_deb_src(),
        }


def enable_non_free(sources: SourcesList) -> int:
    return sources.add_component(*NON_FREE_COMPONENTS)


def enable_deb_src(sources: SourcesList) -> int:
    return sources.enable_deb_src()


__all__ = [
    "NON_FREE_COMPONENTS",
    "SourceEntry",
    "SourcesList",
    "enable_non_free",
    "enable_deb_src",
]
