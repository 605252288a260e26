from dataclasses import dataclass
from typing import Optional

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class Finding:
    """Represents one detected plugin signal."""
    plugin: str
    signal_type: str
    version: Optional[str] = None  # None when no strategy produced a version
    section: Optional[str] = None
    evidence: Optional[str] = None  # trimmed text of the matching node

    @property
    def display_version(self) -> str:
        return self.version or UNKNOWN_VERSION
