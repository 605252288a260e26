"""
Utility functions for deriving plugin versions from matched signals.
"""
import re
import logging
from typing import Optional

from models.ruleset import SignalRule, VersionStrategy

logger = logging.getLogger(__name__)

# "Stable tag: 1.2.3" / "Version: 1.2.3" as published in plugin readmes; trunk is not a release
STABLE_TAG_PATTERN = re.compile(r'\b(?:stable tag|version):\s*(?!trunk)([0-9a-z.-]+)', re.IGNORECASE)
README_URL_SEGMENT = "wp-content/plugins"


def extract_direct_version(text: str, pattern: Optional[re.Pattern]) -> Optional[str]:
    """
    Extract a version from the first capturing group of ``pattern``.

    Examples:
        - "Acme Gallery v4.2.1", /Acme Gallery v([\\d.]+)/ -> 4.2.1
        - "Acme Gallery", /Acme Gallery/ -> None (no group)

    Args:
        text: Trimmed text of the matched node
        pattern: Compiled rule pattern

    Returns:
        The captured version, or None if there is no match, no group, or the group is empty
    """
    if pattern is None or pattern.groups < 1:
        return None

    match = pattern.search(text)
    if not match:
        return None
    return match.group(1) or None


def extract_stable_tag(body: Optional[str]) -> Optional[str]:
    """
    Extract the released version from readme text.

    Examples:
        - "Stable tag: 1.0.4" -> 1.0.4
        - "Version: 2.1-beta" -> 2.1-beta
        - "Stable tag: trunk" -> None

    Args:
        body: Readme contents

    Returns:
        The version token if it contains at least one digit, else None
    """
    if not body:
        return None

    match = STABLE_TAG_PATTERN.search(body)
    if not match:
        return None

    token = match.group(1)
    return token if re.search(r'[0-9]', token) else None


def build_readme_url(base_url: str, plugin_slug: str, path: str) -> str:
    """Join the target URL, the plugin directory, and the readme's relative path."""
    return f"{base_url.rstrip('/')}/{README_URL_SEGMENT}/{plugin_slug}/{path.lstrip('/')}"


async def resolve_version(
    rule: SignalRule,
    plugin_slug: str,
    readme_path: Optional[str],
    text: str,
    base_url: str,
    readme_fetcher=None,
) -> Optional[str]:
    """
    Derive the version for one matched node using the rule's single strategy.

    A readme fetch failure is not an error here; it only means the version
    stays unknown.
    """
    if rule.strategy is VersionStrategy.DIRECT_CAPTURE:
        return extract_direct_version(text, rule.pattern)

    if rule.strategy is VersionStrategy.README_STABLE_TAG:
        if readme_fetcher is None or not readme_path:
            return None
        url = build_readme_url(base_url, plugin_slug, readme_path)
        body = await readme_fetcher.fetch(url)
        version = extract_stable_tag(body)
        logger.debug(f"Readme {url} -> {version or 'no stable tag'}")
        return version

    return None
