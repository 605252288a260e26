from core.signal_registry import SignalRegistry
from signals.base import SignalMatcher


# A <meta> element has no text of its own, so the default selects its content attribute
@SignalRegistry.register("MetaTag", "//meta/@content")
class MetaTagSignal(SignalMatcher):
    """Match generator-style meta tags."""
