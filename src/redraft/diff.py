import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

import structlog
from diff_match_patch import diff_match_patch

from redraft.projector import extract_text

logger = structlog.get_logger(__name__)


@dataclass
class TextChange:
    kind: str  # 'insert', 'delete' or 'replace'
    old: str
    new: str
    # Offset of the change in the old plain text
    position: int


def word_diff(old_text: str, new_text: str) -> List[Tuple[int, str]]:
    """
    Word-level diff as diff_match_patch (op, text) tuples.
    Tokens are whole words, whitespace runs and single punctuation marks.
    """
    dmp = diff_match_patch()

    chars1, chars2, token_array = _words_to_chars(old_text, new_text)
    diffs = dmp.diff_main(chars1, chars2, False)
    dmp.diff_cleanupSemantic(diffs)
    dmp.diff_charsToLines(diffs, token_array)
    return diffs


def describe_changes(old_markup: str, new_markup: str) -> List[TextChange]:
    """
    Compares the plain-text projections of two markup strings.
    Adjacent delete+insert pairs are merged into a 'replace'.
    """
    old_text = extract_text(old_markup)
    new_text = extract_text(new_markup)

    changes: List[TextChange] = []
    position = 0
    pending_delete = None  # (position, text)

    for op, text in word_diff(old_text, new_text):
        if op == 0:
            if pending_delete:
                changes.append(TextChange("delete", pending_delete[1], "", pending_delete[0]))
                pending_delete = None
            position += len(text)
        elif op == -1:
            pending_delete = (position, text)
            position += len(text)
        elif op == 1:
            if pending_delete:
                changes.append(TextChange("replace", pending_delete[1], text, pending_delete[0]))
                pending_delete = None
            else:
                changes.append(TextChange("insert", "", text, position))

    if pending_delete:
        changes.append(TextChange("delete", pending_delete[1], "", pending_delete[0]))

    logger.debug(f"Found {len(changes)} text changes")
    return changes


def format_changes(changes: List[TextChange]) -> str:
    lines = []
    for c in changes:
        if c.kind == "delete":
            lines.append(f"[-] {c.old}")
        elif c.kind == "insert":
            lines.append(f"[+] {c.new}")
        else:
            lines.append(f"[~] '{c.old}' -> '{c.new}'")
    return "\n".join(lines)


def _words_to_chars(text1: str, text2: str) -> Tuple[str, str, List[str]]:
    """
    Splits text into words/tokens and encodes them as unique Unicode characters.
    """
    token_array: List[str] = []
    token_hash: Dict[str, int] = {}
    split_pattern = r"(\s+|\w+|[^\w\s])"

    def encode_text(text: str) -> str:
        tokens = [t for t in re.split(split_pattern, text) if t]
        encoded_chars = []
        for token in tokens:
            if token in token_hash:
                encoded_chars.append(chr(token_hash[token]))
            else:
                code = len(token_array)
                token_hash[token] = code
                token_array.append(token)
                encoded_chars.append(chr(code))
        return "".join(encoded_chars)

    chars1 = encode_text(text1)
    chars2 = encode_text(text2)
    return chars1, chars2, token_array
