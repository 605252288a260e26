import asyncio
import logging
from typing import Callable, Dict, List, Optional

import httpx

import signals  # noqa: F401  (registers the built-in signal types)
from core.context import ScanContext
from core.document import Document
from core.exceptions import FetchError
from core.signal_registry import SignalRegistry
from fetch.http_client import DEFAULT_HEADERS, ReadmeFetcher, fetch_url
from models.finding import Finding
from models.ruleset import PluginRule, Ruleset

DEFAULT_MAX_CONCURRENCY = 8

FindingCallback = Callable[[Finding], None]


class Engine:
    def __init__(
        self,
        ruleset: Ruleset,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        readme_fetcher: Optional[ReadmeFetcher] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        """Initialize the engine with one matcher per registered signal type.

        Args:
            ruleset: Loaded plugin rules
            headers: HTTP headers for every request (default: DEFAULT_HEADERS)
            timeout: Total timeout per request in seconds
            connect_timeout: Connection timeout per request in seconds
            readme_fetcher: Used by rules that read the version from a plugin readme
            max_concurrency: Upper bound on plugins checked at the same time
        """
        self.logger = logging.getLogger(__name__)
        self.ruleset = ruleset
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.readme_fetcher = readme_fetcher or ReadmeFetcher(self.headers, timeout, connect_timeout)
        self.max_concurrency = max(1, max_concurrency)

        self.matchers = SignalRegistry.instantiate_all(self.readme_fetcher)
        self.logger.info(f"Initialized {len(self.matchers)} signal matchers: {', '.join(self.matchers)}")

    async def scan_url(self, url: str) -> ScanContext:
        """Fetch and parse the target page.

        Raises:
            FetchError: the page could not be retrieved
        """
        self.logger.debug(f"Starting scan_url for {url}")
        try:
            response = await fetch_url(
                url,
                timeout=self.timeout,
                connect_timeout=self.connect_timeout,
                headers=self.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, str(e) or type(e).__name__)

        if response.status_code >= 400:
            raise FetchError(url, f"HTTP {response.status_code}")

        self.logger.debug(f"HTTP response: status={response.status_code}, content-length={len(response.content)}")
        document = Document.from_html(response.content)
        return ScanContext(url=url, document=document, status_code=response.status_code)

    async def scan(self, context: ScanContext, on_finding: Optional[FindingCallback] = None) -> List[Finding]:
        """Check every plugin of the ruleset against the document.

        Findings come back grouped by plugin in ruleset order, then by signal
        type in registration order, then in document order. ``on_finding`` is
        called for each finding as soon as its plugin has been checked.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_plugin(plugin: PluginRule) -> List[Finding]:
            async with semaphore:
                found = await self._check_plugin(context, plugin)
            if on_finding:
                for finding in found:
                    on_finding(finding)
            return found

        tasks = [run_plugin(plugin) for _, _, plugin in self.ruleset.plugins()]
        results = await asyncio.gather(*tasks)

        findings: List[Finding] = []
        for plugin_findings in results:
            findings.extend(plugin_findings)

        self.logger.info(f"Scan complete: {len(findings)} findings across {self.ruleset.plugin_count} plugins")
        return findings

    async def _check_plugin(self, context: ScanContext, plugin: PluginRule) -> List[Finding]:
        found: List[Finding] = []
        for signal_type, matcher in self.matchers.items():
            async for finding in matcher.match(context, plugin):
                self.logger.debug(f"{plugin.name} matched {signal_type}: {finding.evidence!r}")
                found.append(finding)
        return found
