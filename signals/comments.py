from core.signal_registry import SignalRegistry
from signals.base import SignalMatcher


@SignalRegistry.register("Comment", "//comment()")
class CommentSignal(SignalMatcher):
    """Match plugin banners left in HTML comments."""
