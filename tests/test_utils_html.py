"""
Tests for the markup well-formedness check.
"""

from redraft.utils.html import markup_warnings


def test_balanced_markup_has_no_warnings():
    assert markup_warnings("<h2>Skills</h2><ul><li>Python</li><li>SQL</li></ul>") == []


def test_void_tags_and_named_entities_are_accepted():
    assert markup_warnings('<p>a<br>b&nbsp;c<img src="x.png"></p>') == []
    assert markup_warnings("<p>R&amp;D &eacute;t&eacute;</p>") == []


def test_crossed_tags_are_reported():
    assert markup_warnings("<p><b>x</p></b>") != []


def test_crossed_marker_after_accept_is_reported():
    markup = '<p>Built <b><mark data-suggestion-id="a">scalable</b> systems.</mark></p>'
    assert markup_warnings(markup)
