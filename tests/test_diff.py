"""
Tests for word-level change descriptions between two markup versions.
"""

from redraft.diff import describe_changes, format_changes, word_diff


def test_replaced_word():
    changes = describe_changes("<p>Built scalable systems.</p>", "<p>Built <b>distributed</b> systems.</p>")
    assert len(changes) == 1
    change = changes[0]
    assert change.kind == "replace"
    assert change.old == "scalable"
    assert change.new == "distributed"
    assert change.position == len("Built ")


def test_pure_insert_and_delete():
    inserted = describe_changes("<p>Python SQL</p>", "<p>Python SQL Docker</p>")
    assert [(c.kind, c.new) for c in inserted] == [("insert", " Docker")]

    deleted = describe_changes("<p>Python SQL Docker</p>", "<p>Python SQL</p>")
    assert [(c.kind, c.old) for c in deleted] == [("delete", " Docker")]


def test_markup_only_change_is_not_a_text_change():
    assert describe_changes("<p>Same text</p>", "<p><i>Same</i> text</p>") == []


def test_word_diff_tokens_are_whole_words():
    diffs = word_diff("led the team", "managed the team")
    assert (-1, "led") in diffs
    assert (1, "managed") in diffs


def test_format_changes():
    changes = describe_changes("<p>a b c</p>", "<p>a x c d</p>")
    text = format_changes(changes)
    assert "[~] 'b' -> 'x'" in text
    assert "[+]  d" in text
