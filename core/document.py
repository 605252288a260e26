"""Parsed HTML document queryable by XPath."""
import logging
from typing import Any, List, Union

from lxml import etree, html

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "<html></html>"


def validate_xpath(expression: str) -> None:
    """Check that ``expression`` compiles, evaluates, and selects nodes.

    Evaluating once against an empty page surfaces unknown functions and
    undefined variables, which lxml only reports at evaluation time.

    Raises:
        etree.XPathError: syntax or evaluation failure
        ValueError: the expression yields a number, string or boolean
    """
    result = etree.XPath(expression)(html.document_fromstring(EMPTY_DOCUMENT))
    if not isinstance(result, list):
        raise ValueError(f"expression must select nodes, not a {type(result).__name__}")


def node_text(node: Any) -> str:
    """Return the trimmed text of an XPath result item.

    Elements yield their text content, comments their body, and attribute or
    text() results are already strings.
    """
    if isinstance(node, str):
        return node.strip()
    if getattr(node, "tag", None) is etree.Comment:
        return (node.text or "").strip()
    if hasattr(node, "text_content"):
        return node.text_content().strip()
    return str(node).strip()


class Document:
    """Read-only wrapper around an lxml tree."""

    def __init__(self, tree: etree._ElementTree):
        self._tree = tree

    @classmethod
    def from_html(cls, markup: Union[str, bytes]) -> "Document":
        if isinstance(markup, bytes):
            parser = html.HTMLParser(encoding="utf-8")
            if not markup.strip():
                markup = EMPTY_DOCUMENT.encode()
        else:
            parser = html.HTMLParser()
            if not markup.strip():
                markup = EMPTY_DOCUMENT
        try:
            root = html.document_fromstring(markup, parser=parser)
        except etree.ParserError as e:
            # lxml refuses markup with no elements at all (e.g. a bare comment)
            logger.warning(f"Unparseable document, scanning an empty page instead: {e}")
            root = html.document_fromstring(EMPTY_DOCUMENT)
        return cls(root.getroottree())

    def select(self, xpath: str) -> List[Any]:
        """Evaluate ``xpath`` against the whole document, in document order."""
        result = self._tree.xpath(xpath)
        if isinstance(result, list):
            return result
        # A number, string or boolean is not a node set; nothing was selected
        logger.debug(f"{xpath} did not select nodes (got {type(result).__name__})")
        return []
