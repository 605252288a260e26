"""Signal matchers. Importing this package registers every built-in signal type."""
from signals import comments, meta_tags, script_tags  # noqa: F401
from signals.base import SignalMatcher

__all__ = ["SignalMatcher"]
