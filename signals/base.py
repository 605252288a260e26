"""Shared matching logic for every signal type."""
import logging
from typing import AsyncIterator, Optional

from core.context import ScanContext
from core.document import node_text
from core.version_utils import resolve_version
from models.finding import Finding
from models.ruleset import PluginRule

logger = logging.getLogger(__name__)

EVIDENCE_MAX_LENGTH = 200


def _truncate_value(value: str, max_length: int = EVIDENCE_MAX_LENGTH) -> str:
    """Truncate a string to max_length, adding ellipsis if truncated."""
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


class SignalMatcher:
    """Evaluates one signal type of a plugin rule against a document.

    Subclasses only need to be registered with ``SignalRegistry.register``,
    which sets ``signal_type`` and ``default_xpath`` on them.
    """

    signal_type: str = ""
    default_xpath: str = ""

    def __init__(self, readme_fetcher=None):
        self.readme_fetcher = readme_fetcher

    async def match(self, context: ScanContext, plugin: PluginRule) -> AsyncIterator[Finding]:
        """Yield one Finding per node that satisfies the plugin's rule, in document order."""
        rule = plugin.signal(self.signal_type)
        if rule is None:
            return

        xpath = rule.xpath or self.default_xpath
        nodes = context.document.select(xpath)
        logger.debug(f"{plugin.name}/{self.signal_type}: {len(nodes)} candidate nodes for {xpath}")

        for node in nodes:
            text = node_text(node)
            if rule.pattern is not None and not rule.pattern.search(text):
                continue

            version: Optional[str] = await resolve_version(
                rule,
                plugin.name,
                plugin.readme_path,
                text,
                context.url,
                self.readme_fetcher,
            )
            yield Finding(
                plugin=plugin.name,
                signal_type=self.signal_type,
                version=version,
                section=plugin.section,
                evidence=_truncate_value(text),
            )
