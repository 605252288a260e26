from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Dict, Iterator, Optional, Tuple


class VersionStrategy(Enum):
    """How a version is derived once a signal has matched."""
    DIRECT_CAPTURE = "direct_capture"  # first group of the signal pattern
    README_STABLE_TAG = "readme_stable_tag"  # "Stable tag:" line of the plugin readme
    NONE = "none"


@dataclass(frozen=True)
class SignalRule:
    """Defines how one signal type reveals a plugin."""
    signal_type: str  # e.g. 'Comment', 'MetaTag'
    pattern: Optional[re.Pattern] = None  # node text must match to count as a hit
    xpath: Optional[str] = None  # falls back to the signal type's default
    has_version_field: bool = False  # rule declared a 'version' key
    strategy: VersionStrategy = VersionStrategy.NONE


@dataclass(frozen=True)
class PluginRule:
    """Represents a plugin and its detection rules."""
    name: str
    section: str
    signals: Dict[str, SignalRule] = field(default_factory=dict)
    readme_path: Optional[str] = None

    def signal(self, signal_type: str) -> Optional[SignalRule]:
        return self.signals.get(signal_type)


@dataclass(frozen=True)
class Ruleset:
    """Section name -> plugin name -> PluginRule, in file order."""
    sections: Dict[str, Dict[str, PluginRule]] = field(default_factory=dict)

    def plugins(self) -> Iterator[Tuple[str, str, PluginRule]]:
        for section, entries in self.sections.items():
            for name, plugin in entries.items():
                yield section, name, plugin

    @property
    def plugin_count(self) -> int:
        return sum(len(entries) for entries in self.sections.values())


def resolve_strategy(pattern: Optional[re.Pattern], has_version_field: bool, readme_path: Optional[str]) -> VersionStrategy:
    """Pick the single version strategy a signal rule will use.

    A declared capture wins over the readme even when the capture later
    fails to match; the two are never chained.
    """
    if has_version_field and pattern is not None:
        return VersionStrategy.DIRECT_CAPTURE
    if readme_path:
        return VersionStrategy.README_STABLE_TAG
    return VersionStrategy.NONE
