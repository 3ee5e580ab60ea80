"""
Plain-text projection of HTML markup.

The projection strips tags and decodes entities, keeping one markup range per
plain-text character so a match in the plain text can be mapped back to exact
markup offsets. Ranges always cover whole tokens, so an offset taken from the
map never lands inside a tag or an entity.
"""

import html
import re
from dataclasses import dataclass, field
from typing import List, Tuple

import structlog

from redraft.models import TextSpan

logger = structlog.get_logger(__name__)

# Named, decimal and hex character references
_ENTITY_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")

CharacterMap = List[Tuple[int, int]]


@dataclass
class Projection:
    plain_text: str = ""
    # char_map[i] = (start, end) markup range that produced plain_text[i]
    char_map: CharacterMap = field(default_factory=list)

    def markup_range(self, span: TextSpan) -> Tuple[int, int]:
        """Converts a plain-text span to (markup_start, markup_end)."""
        if span.start >= span.end:
            raise ValueError(f"Cannot map empty span [{span.start}:{span.end})")
        return self.char_map[span.start][0], self.char_map[span.end - 1][1]


def project(markup: str) -> Projection:
    """
    Scans markup once as tags, entities and literal characters.

    - Tag (`<...>`): contributes nothing. A `<` without a closing `>` is literal.
    - Entity (`&...;`): decodes to one or more characters, each mapped to the
      whole entity token.
    - Literal: maps to its own one-character range.
    """
    chars: List[str] = []
    char_map: CharacterMap = []

    i = 0
    n = len(markup)
    # Once no '>' remains, every later '<' is literal; avoids rescanning the tail
    tags_possible = True
    while i < n:
        ch = markup[i]

        if ch == "<" and tags_possible:
            close = markup.find(">", i + 1)
            if close != -1:
                i = close + 1
                continue
            tags_possible = False

        elif ch == "&":
            m = _ENTITY_RE.match(markup, i)
            if m:
                token = m.group(0)
                decoded = html.unescape(token)
                for d in decoded:
                    chars.append(d)
                    char_map.append((m.start(), m.end()))
                i = m.end()
                continue

        chars.append(ch)
        char_map.append((i, i + 1))
        i += 1

    projection = Projection(plain_text="".join(chars), char_map=char_map)
    logger.debug(f"Projected {n} markup chars to {len(projection.plain_text)} plain chars")
    return projection


def extract_text(markup: str) -> str:
    return project(markup).plain_text
