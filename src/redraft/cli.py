import argparse
import json
import sys
from pathlib import Path
from typing import List

from redraft import __version__
from redraft.config import EngineConfig
from redraft.diff import describe_changes, format_changes
from redraft.document import Document
from redraft.exceptions import RedraftError
from redraft.highlight import HighlightScheduler
from redraft.markup import render_preview
from redraft.models import SuggestionStatus
from redraft.persistence import StatusLog
from redraft.projector import extract_text
from redraft.store import SuggestionStore
from redraft.utils.html import markup_warnings


def _read_text(path: Path) -> str:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_or_print(text: str, output: Path = None):
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"✅ Saved to {output}", file=sys.stderr)
    else:
        print(text)


def _build_config(args) -> EngineConfig:
    config = EngineConfig.from_env()
    if getattr(args, "separator", None) is not None:
        config = config.model_copy(update={"add_separator": args.separator})
    return config


def _load_store(markup_path: Path, feedback_path: Path, config: EngineConfig, **kwargs) -> SuggestionStore:
    document = Document(_read_text(markup_path))
    try:
        return SuggestionStore.from_feedback(
            document, _read_text(feedback_path), skip_invalid=True, config=config, **kwargs
        )
    except RedraftError as e:
        print(f"Error parsing feedback: {e}", file=sys.stderr)
        sys.exit(1)


def handle_extract(args):
    _write_or_print(extract_text(_read_text(args.input)), args.output)


def handle_preview(args):
    config = _build_config(args)
    store = _load_store(args.input, args.feedback, config)
    result = render_preview(store.document.markup, store.pending(), config)
    _write_or_print(result, args.output)


def _select_ids(store: SuggestionStore, ids: List[str], everything: bool) -> List[str]:
    if everything:
        return [s.id for s in store.pending()]
    return ids or []


def handle_apply(args):
    config = _build_config(args)
    status_log = StatusLog(args.status_log) if args.status_log else None
    scheduler = HighlightScheduler(config)
    store = _load_store(args.input, args.feedback, config, scheduler=scheduler, persistence=status_log)

    if status_log:
        merged = store.merge_persisted(status_log.load())
        if merged:
            print(f"Restored {merged} statuses from {args.status_log}", file=sys.stderr)

    original_markup = store.document.markup
    failures = 0

    for suggestion_id in args.reject:
        try:
            store.reject(suggestion_id)
        except RedraftError as e:
            print(f"⚠️  {e}", file=sys.stderr)
            failures += 1

    for suggestion_id in _select_ids(store, args.accept, args.accept_all):
        try:
            result = store.accept(suggestion_id)
        except RedraftError as e:
            print(f"⚠️  {e}", file=sys.stderr)
            failures += 1
            continue
        if not result.applied:
            # Reorder notes and unlocated text need a human
            print(f"[!] {suggestion_id}: accepted but not applied: {result.reason}", file=sys.stderr)

    if args.keep_markers:
        scheduler.cancel_all()
    else:
        scheduler.flush(store.document)

    markup = store.document.markup

    if args.check:
        for warning in markup_warnings(markup):
            print(f"⚠️  Markup: {warning}", file=sys.stderr)

    output_path = args.output or args.input.with_name(f"{args.input.stem}_revised{args.input.suffix}")
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(markup)

    stats = store.stats()
    print(f"✅ Saved to {output_path}", file=sys.stderr)
    print(
        f"Stats: {stats[SuggestionStatus.ACCEPTED.value]} accepted "
        f"({stats['unapplied']} not applied), {stats[SuggestionStatus.REJECTED.value]} rejected, "
        f"{stats[SuggestionStatus.PENDING.value]} pending.",
        file=sys.stderr,
    )
    if args.show_diff:
        print(format_changes(describe_changes(original_markup, markup)))
    if failures or stats["unapplied"]:
        sys.exit(1)


def handle_diff(args):
    changes = describe_changes(_read_text(args.original), _read_text(args.modified))

    if args.json:
        output = [{"kind": c.kind, "old": c.old, "new": c.new, "position": c.position} for c in changes]
        print(json.dumps(output, indent=2))
    else:
        print(f"Found {len(changes)} changes:", file=sys.stderr)
        print(format_changes(changes))


def main(argv=None):
    parser = argparse.ArgumentParser(prog="redraft", description="Redraft: apply review suggestions to HTML documents")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_extract = subparsers.add_parser("extract", help="Print the plain-text projection of an HTML file")
    p_extract.add_argument("input", type=Path, help="Input HTML file")
    p_extract.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_extract.set_defaults(func=handle_extract)

    p_preview = subparsers.add_parser("preview", help="Highlight where pending suggestions would apply")
    p_preview.add_argument("input", type=Path, help="Input HTML file")
    p_preview.add_argument("feedback", type=Path, help="Feedback JSON (summary + suggestions)")
    p_preview.add_argument("-o", "--output", type=Path, help="Output HTML file (default: stdout)")
    p_preview.set_defaults(func=handle_preview)

    p_apply = subparsers.add_parser("apply", help="Accept/reject suggestions and save the revised HTML")
    p_apply.add_argument("input", type=Path, help="Input HTML file")
    p_apply.add_argument("feedback", type=Path, help="Feedback JSON (summary + suggestions)")
    p_apply.add_argument("-a", "--accept", nargs="*", default=[], metavar="ID", help="Suggestion ids to accept")
    p_apply.add_argument("-r", "--reject", nargs="*", default=[], metavar="ID", help="Suggestion ids to reject")
    p_apply.add_argument("--accept-all", action="store_true", help="Accept every pending suggestion")
    p_apply.add_argument("-o", "--output", type=Path, help="Output HTML path (default: <input>_revised)")
    p_apply.add_argument("--status-log", type=Path, help="JSON-lines file recording accept/reject decisions")
    p_apply.add_argument("--separator", type=str, default=None, help="Separator placed before added text")
    p_apply.add_argument("--keep-markers", action="store_true", help="Keep highlight markers in the output")
    p_apply.add_argument("--check", action="store_true", help="Warn if the revised markup is not balanced")
    p_apply.add_argument("--show-diff", action="store_true", help="Print a word diff of the text changes")
    p_apply.set_defaults(func=handle_apply)

    p_diff = subparsers.add_parser("diff", help="Word diff between the text of two HTML files")
    p_diff.add_argument("original", type=Path, help="Original HTML")
    p_diff.add_argument("modified", type=Path, help="Modified HTML")
    p_diff.add_argument("--json", action="store_true", help="Output raw JSON changes")
    p_diff.set_defaults(func=handle_diff)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
