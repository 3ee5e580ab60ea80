"""
Tests for the command line entry point.
"""

import json

import pytest

from redraft.cli import main
from redraft.persistence import StatusLog

RESUME = "<h2>Experience</h2><ul><li>Built <b>scalable</b> systems.</li></ul><h2>Skills</h2><p>Python, SQL</p>"

FEEDBACK = {
    "summary": {"overall": "Solid start.", "strengths": [], "weaknesses": [], "score": 64},
    "suggestions": [
        {
            "id": "s1",
            "type": "replace",
            "original": "Built scalable systems.",
            "suggested": "Architected scalable systems.",
        },
        {"id": "s2", "type": "add", "anchor": "Python, SQL", "suggested": "Docker"},
        {"id": "s3", "type": "reorder", "anchor": "Skills", "note": "Move Skills to the top."},
    ],
}


@pytest.fixture
def files(tmp_path):
    resume = tmp_path / "resume.html"
    resume.write_text(RESUME, encoding="utf-8")
    feedback = tmp_path / "feedback.json"
    feedback.write_text(json.dumps(FEEDBACK), encoding="utf-8")
    return resume, feedback


def test_extract_prints_plain_text(files, capsys):
    resume, _ = files
    main(["extract", str(resume)])
    assert capsys.readouterr().out.strip() == "ExperienceBuilt scalable systems.SkillsPython, SQL"


def test_apply_selected_ids(files, tmp_path):
    resume, feedback = files
    status_path = tmp_path / "statuses.jsonl"

    main(["apply", str(resume), str(feedback), "-a", "s1", "s2", "-r", "s3", "--status-log", str(status_path)])

    revised = (tmp_path / "resume_revised.html").read_text(encoding="utf-8")
    assert "<li>Architected scalable systems.</li>" in revised
    assert "<p>Python, SQL Docker</p>" in revised
    assert "<mark" not in revised
    assert StatusLog(status_path).load() == {"s1": "accepted", "s2": "accepted", "s3": "rejected"}


def test_apply_keep_markers(files, tmp_path):
    resume, feedback = files
    output = tmp_path / "out.html"
    main(["apply", str(resume), str(feedback), "-a", "s1", "--keep-markers", "-o", str(output)])
    assert '<mark data-suggestion-id="s1">Architected scalable systems.</mark>' in output.read_text(encoding="utf-8")


def test_apply_all_exits_nonzero_for_unapplied_reorder(files, tmp_path, capsys):
    resume, feedback = files
    with pytest.raises(SystemExit) as exc:
        main(["apply", str(resume), str(feedback), "--accept-all"])
    assert exc.value.code == 1
    assert "Move Skills to the top." in capsys.readouterr().err
    # The revision is still written
    assert (tmp_path / "resume_revised.html").exists()


def test_apply_unknown_id_fails(files):
    resume, feedback = files
    with pytest.raises(SystemExit):
        main(["apply", str(resume), str(feedback), "-a", "zz"])


def test_missing_input_file(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["extract", str(tmp_path / "missing.html")])
    assert exc.value.code == 1


def test_diff_json(tmp_path, capsys):
    old = tmp_path / "old.html"
    new = tmp_path / "new.html"
    old.write_text("<p>Built scalable systems.</p>", encoding="utf-8")
    new.write_text("<p>Built distributed systems.</p>", encoding="utf-8")

    main(["diff", str(old), str(new), "--json"])
    changes = json.loads(capsys.readouterr().out)
    assert changes == [{"kind": "replace", "old": "scalable", "new": "distributed", "position": 6}]


def test_preview_highlights_pending(files, capsys):
    resume, feedback = files
    main(["preview", str(resume), str(feedback)])
    out = capsys.readouterr().out
    assert '<mark data-suggestion-id="s2">Python, SQL</mark>' in out
    assert '<mark data-suggestion-id="s3">Skills</mark>' in out
