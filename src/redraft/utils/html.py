"""
Well-formedness check for patched markup.

The engine never validates markup itself; hosts can call `markup_warnings`
after an accept to spot tags a replacement left unbalanced.
"""

import html
import re
from typing import List

import structlog
from lxml import etree

logger = structlog.get_logger(__name__)

_VOID_TAG_RE = re.compile(
    r"<(area|base|br|col|embed|hr|img|input|link|meta|source|track|wbr)\b([^>]*?)/?>",
    re.IGNORECASE,
)
_NAMED_ENTITY_RE = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")
_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}


def _numeric_entity(match: "re.Match") -> str:
    name = match.group(1)
    if name in _XML_ENTITIES:
        return match.group(0)
    decoded = html.unescape(match.group(0))
    if decoded == match.group(0):
        # Unknown entity: leave it for the parser to report
        return decoded
    return "".join(f"&#{ord(c)};" for c in decoded)


def _to_xml_fragment(markup: str) -> str:
    fragment = _VOID_TAG_RE.sub(r"<\1\2/>", markup)
    fragment = _NAMED_ENTITY_RE.sub(_numeric_entity, fragment)
    return f"<fragment>{fragment}</fragment>"


def markup_warnings(markup: str) -> List[str]:
    """
    Returns parser messages for markup that is not balanced, or [] when it is.

    HTML void elements and named entities are normalized first so ordinary
    editor output parses cleanly as XML.
    """
    parser = etree.XMLParser(recover=False, resolve_entities=False, no_network=True)
    try:
        etree.fromstring(_to_xml_fragment(markup).encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        messages = [entry.message for entry in e.error_log] or [str(e)]
        logger.debug(f"Markup is not well formed: {messages[0]}")
        return messages
    return []
