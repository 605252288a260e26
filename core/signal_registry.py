"""Dynamic signal type registration system."""
import logging
from typing import Dict, Type, List

logger = logging.getLogger(__name__)


class SignalRegistry:
    """Registry mapping signal type names to their matcher and default XPath."""

    _matchers: Dict[str, Type] = {}
    _default_xpaths: Dict[str, str] = {}
    _order: List[str] = []  # Preserve registration order

    @classmethod
    def register(cls, name: str, default_xpath: str):
        """Decorator to register a signal matcher class.

        Args:
            name: Signal type as written in the rules file (e.g., "Comment", "MetaTag")
            default_xpath: Node selection used when a rule gives no xpath of its own

        Example:
            @SignalRegistry.register("Comment", "//comment()")
            class CommentSignal(SignalMatcher):
                ...
        """
        def decorator(matcher_class: Type):
            if name in cls._matchers:
                logger.warning(f"Signal type '{name}' already registered, overwriting")
            else:
                cls._order.append(name)

            cls._matchers[name] = matcher_class
            cls._default_xpaths[name] = default_xpath
            matcher_class.signal_type = name
            matcher_class.default_xpath = default_xpath

            logger.debug(f"Registered signal type: {name} ({default_xpath}) -> {matcher_class.__name__}")
            return matcher_class
        return decorator

    @classmethod
    def get_all_names(cls) -> List[str]:
        """Get names of all registered signal types in registration order."""
        return cls._order.copy()

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._matchers

    @classmethod
    def get_default_xpath(cls, name: str) -> str:
        return cls._default_xpaths[name]

    @classmethod
    def get_matcher_class(cls, name: str) -> Type:
        """Get matcher class by signal type name."""
        return cls._matchers.get(name)

    @classmethod
    def instantiate_all(cls, readme_fetcher=None) -> Dict[str, object]:
        """Instantiate one matcher per registered signal type, in registration order."""
        return {name: cls._matchers[name](readme_fetcher) for name in cls._order}

    @classmethod
    def unregister(cls, name: str):
        """Remove a single signal type (useful for testing)."""
        if name in cls._matchers:
            del cls._matchers[name]
            del cls._default_xpaths[name]
            cls._order.remove(name)
