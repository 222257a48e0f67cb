"""CLI interface for content-policy.

Usage:
    # Scan one message (stdin: plain text, stdout: JSON result)
    echo 'Reach me at jane@example.com' | content-policy scan

    # Exit 1 when the message would be redacted
    echo 'call 212-555-0147' | content-policy scan --check

    # Redact a backlog (stdin: JSON array of chat messages)
    cat backlog.json | content-policy scan-messages

    # Show the active rules
    content-policy --config policy.yaml rules
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import build_ruleset, load_config, load_from_yaml
from .errors import PolicyConfigError
from .filter import ContentFilter
from .types import PolicyRuleSet

DEFAULT_CONFIG = os.environ.get("CONTENT_POLICY_CONFIG", "")

EXIT_OK = 0
EXIT_VIOLATION = 1
EXIT_CONFIG = 2


def _build_ruleset(args: argparse.Namespace) -> PolicyRuleSet:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.engine:
        cfg["engine"] = args.engine
    if args.allow_list is not None:
        cfg["allow_list"] = {d for d in args.allow_list.split(",") if d.strip()}
    return build_ruleset(cfg)


def cmd_scan(args: argparse.Namespace, ruleset: PolicyRuleSet) -> int:
    """Scan plain text on stdin."""
    result = ContentFilter(ruleset).scan(sys.stdin.read())
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    if args.check and result.has_violation:
        return EXIT_VIOLATION
    return EXIT_OK


def cmd_scan_messages(args: argparse.Namespace, ruleset: PolicyRuleSet) -> int:
    """Redact chat-format messages (JSON array) on stdin."""
    messages = json.loads(sys.stdin.read() or "[]")
    if not isinstance(messages, list):
        raise PolicyConfigError("scan-messages expects a JSON array on stdin")
    redacted = ContentFilter(ruleset).scan_messages(messages, content_key=args.content_key)
    json.dump(redacted, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK


def cmd_rules(args: argparse.Namespace, ruleset: PolicyRuleSet) -> int:
    """Dump the active rule set as JSON."""
    out = {
        "allow_list": sorted(ruleset.allow_list),
        "rules": [
            {
                "name": r.name,
                "category": r.category.value,
                "matcher": repr(r.matcher),
                "redaction_token": r.redaction_token,
            }
            for r in ruleset.ordered_rules()
        ],
    }
    json.dump(out, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="content-policy",
        description="Detect and redact off-platform contact details in chat messages",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML policy config")
    parser.add_argument("--engine", choices=("regex", "presidio"), help="Matcher engine")
    parser.add_argument(
        "--allow-list", default=None,
        help="Comma-separated domains never treated as external URLs (replaces config)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    p_scan = sub.add_parser("scan", help="Scan plain text (stdin)")
    p_scan.add_argument("--check", action="store_true", help="Exit 1 if text would be redacted")
    p_msgs = sub.add_parser("scan-messages", help="Redact chat messages (JSON stdin)")
    p_msgs.add_argument("--content-key", default="content")
    sub.add_parser("rules", help="Show active rules")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "scan": cmd_scan,
        "scan-messages": cmd_scan_messages,
        "rules": cmd_rules,
    }
    try:
        ruleset = _build_ruleset(args)
        return cmds[args.command](args, ruleset)
    except (PolicyConfigError, OSError, json.JSONDecodeError) as exc:
        sys.stderr.write(f"content-policy: {exc}\n")
        return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())
