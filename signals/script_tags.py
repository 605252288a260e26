from core.signal_registry import SignalRegistry
from signals.base import SignalMatcher


@SignalRegistry.register("ScriptTag", "//script/@src")
class ScriptTagSignal(SignalMatcher):
    """Match script URLs, which for plugins usually carry a ?ver= query."""
