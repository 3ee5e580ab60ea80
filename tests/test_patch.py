"""
Tests for the per-type patch semantics.
"""

from redraft.config import EngineConfig
from redraft.models import Suggestion, SuggestionType, TextSpan
from redraft.patch import ANCHOR_NOT_FOUND, SOURCE_NOT_FOUND, apply_suggestion, patch
from redraft.projector import extract_text, project


def _suggestion(type_, **fields):
    return Suggestion(id=fields.pop("id", "s1"), type=type_, **fields)


def test_replace_drops_inner_tag_and_wraps_marker():
    markup = "<p>Built <b>scalable</b> systems.</p>"
    s = _suggestion(
        SuggestionType.REPLACE,
        original="Built scalable systems.",
        suggested="Architected 3 scalable distributed systems.",
    )
    result = apply_suggestion(markup, s)

    assert result.applied is True
    assert result.markup == (
        '<p><mark data-suggestion-id="s1">Architected 3 scalable distributed systems.</mark></p>'
    )
    plain = extract_text(result.markup)
    assert "Architected 3 scalable distributed systems." in plain
    assert "Built scalable systems." not in plain
    assert "<b>" not in result.markup


def test_rewrite_reports_highlight_range():
    markup = "<ul><li>Worked on APIs</li><li>Python</li></ul>"
    s = _suggestion(SuggestionType.REWRITE, original="Worked on APIs", suggested="Designed REST APIs")
    result = apply_suggestion(markup, s)

    start, end = result.highlight
    assert result.markup[start:end] == '<mark data-suggestion-id="s1">Designed REST APIs</mark>'
    assert result.markup.endswith("</li><li>Python</li></ul>")


def test_rewrite_keeps_surrounding_markup():
    markup = "<p>Skills: <b>Python</b>, Go</p>"
    s = _suggestion(SuggestionType.REWRITE, original="Go", suggested="Golang")
    result = apply_suggestion(markup, s)
    assert result.markup == '<p>Skills: <b>Python</b>, <mark data-suggestion-id="s1">Golang</mark></p>'


def test_remove_splices_without_marker():
    markup = "<ul><li>Hardworking team player</li><li>Python</li></ul>"
    s = _suggestion(SuggestionType.REMOVE, original="Hardworking team player")
    result = apply_suggestion(markup, s)

    assert result.applied is True
    assert result.markup == "<ul><li></li><li>Python</li></ul>"
    assert result.highlight is None
    assert "Hardworking" not in extract_text(result.markup)


def test_add_inserts_after_anchor():
    markup = "<p>Skills: Python</p><p>Education</p>"
    s = _suggestion(SuggestionType.ADD, anchor="Skills: Python", suggested="Go")
    result = apply_suggestion(markup, s)

    assert result.applied is True
    assert result.reason == ""
    assert result.markup == "<p>Skills: Python Go</p><p>Education</p>"


def test_add_appends_when_anchor_missing():
    markup = "<p>Summary</p>"
    s = _suggestion(SuggestionType.ADD, anchor="No such line", suggested="Certified AWS architect")
    result = apply_suggestion(markup, s)

    assert result.applied is True
    assert result.reason == ANCHOR_NOT_FOUND
    assert result.markup == "<p>Summary</p> Certified AWS architect"
    assert len(result.markup) >= len(markup) + len(s.suggested)


def test_add_with_empty_anchor_appends():
    s = _suggestion(SuggestionType.ADD, suggested="Volunteer work")
    result = apply_suggestion("<p>x</p>", s)
    assert result.markup == "<p>x</p> Volunteer work"


def test_add_uses_configured_separator():
    config = EngineConfig(add_separator="<br>")
    s = _suggestion(SuggestionType.ADD, anchor="Python", suggested="Go")
    result = apply_suggestion("<p>Python</p>", s, config)
    assert result.markup == "<p>Python<br>Go</p>"


def test_suggested_text_is_escaped():
    s = _suggestion(SuggestionType.ADD, anchor="Skills:", suggested="C & <C++>")
    result = apply_suggestion("<p>Skills:</p>", s)
    assert result.markup == "<p>Skills: C &amp; &lt;C++&gt;</p>"
    assert extract_text(result.markup) == "Skills: C & <C++>"


def test_escaping_can_be_disabled():
    config = EngineConfig(escape_suggested=False)
    s = _suggestion(SuggestionType.REPLACE, original="Go", suggested="<i>Go</i>")
    result = apply_suggestion("<p>Go</p>", s, config)
    assert result.markup == '<p><mark data-suggestion-id="s1"><i>Go</i></mark></p>'


def test_reorder_never_mutates():
    s = _suggestion(SuggestionType.REORDER, original="Education", note="Move Education below Experience.")
    result = apply_suggestion("<h2>Education</h2><h2>Experience</h2>", s)

    assert result.applied is False
    assert result.markup is None
    assert result.reason == "Move Education below Experience."


def test_missing_original_is_not_an_error():
    for type_ in (SuggestionType.REWRITE, SuggestionType.REPLACE, SuggestionType.REMOVE):
        s = _suggestion(type_, original="Not in the document", suggested="x")
        result = apply_suggestion("<p>Something else</p>", s)
        assert result.applied is False
        assert result.markup is None
        assert result.reason == SOURCE_NOT_FOUND


def test_entity_is_replaced_whole():
    markup = "<p>R&amp;D lead</p>"
    s = _suggestion(SuggestionType.REPLACE, original="R&", suggested="X")
    result = apply_suggestion(markup, s)
    assert result.markup == '<p><mark data-suggestion-id="s1">X</mark>D lead</p>'


def test_whitespace_drift_still_patches():
    markup = "<p>Led a\n   team of <b>five</b>.</p>"
    s = _suggestion(SuggestionType.REWRITE, original="Led a team of five.", suggested="Managed five engineers.")
    result = apply_suggestion(markup, s)
    assert result.markup == '<p><mark data-suggestion-id="s1">Managed five engineers.</mark></p>'


def test_patch_with_explicit_span():
    markup = "<p>one two one</p>"
    projection = project(markup)
    s = _suggestion(SuggestionType.REMOVE, original="one")
    # Second occurrence, chosen by the caller
    result = patch(markup, projection, TextSpan(8, 11), s)
    assert result.markup == "<p>one two </p>"
