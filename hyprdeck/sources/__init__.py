"""APT sources inspection and editing."""

from .model import NON_FREE_COMPONENTS, SourceEntry, SourcesList, enable_deb_src, enable_non_free
from .operations import DEFAULT_SOURCES_FILE, SourcesEditOperation, read_sources

__all__ = [
    "NON_FREE_COMPONENTS",
    "SourceEntry",
    "SourcesList",
    "enable_deb_src",
    "enable_non_free",
    "DEFAULT_SOURCES_FILE",
    "SourcesEditOperation",
    "read_sources",
]
