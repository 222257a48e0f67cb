"""ContentFilter — the main API.

Usage:
    from content_policy import ContentFilter, scan

    result = scan("Reach me at jane@example.com")
    print(result.redacted_text)   # "Reach me at ***EMAIL REMOVED***"
    print(result.labels)          # ("email",)

    strict = ContentFilter(my_ruleset)   # reusable, thread-safe
    strict.scan("text me on whatsapp").flagged   # True, nothing redacted

Rules run in category order (email, phone, url, keyword) against the
original text.  A redacting span that lies inside a region already
claimed by an earlier rule is dropped.  One that reaches past such a
region swallows it: the union is redacted with the later rule's token
and both categories are reported, so an external URL carrying a phone
number still has its domain removed.
"""

from __future__ import annotations

from .patterns import default_ruleset
from .types import Category, PolicyRuleSet, ScanResult, Violation

_DEFAULT_RULESET = default_ruleset()


def scan(text: str, config: PolicyRuleSet | None = None) -> ScanResult:
    """Scan one message and return the redacted text plus what was found.

    Never raises for string input and has no side effects.
    """
    rules = config if config is not None else _DEFAULT_RULESET
    if not text:
        return ScanResult(original_text=text, redacted_text=text)

    violations: list[Violation] = []
    regions: list[tuple[int, int, str]] = []   # (start, end, token) to splice

    for rule in rules.ordered_rules():
        for start, end in rule.matcher.find_spans(text):
            if end <= start:
                continue
            fragment = text[start:end]
            if rule.category is Category.URL and rules.is_allowed(fragment):
                continue
            if rule.redacts:
                overlapping = [r for r in regions if start < r[1] and end > r[0]]
                if any(s <= start and end <= e for s, e, _ in overlapping):
                    continue
                if overlapping:
                    regions = [r for r in regions if r not in overlapping]
                    start_u = min([start] + [r[0] for r in overlapping])
                    end_u = max([end] + [r[1] for r in overlapping])
                    regions.append((start_u, end_u, rule.redaction_token))
                else:
                    regions.append((start, end, rule.redaction_token))
            violations.append(Violation(
                category=rule.category,
                rule=rule.name,
                start=start,
                end=end,
                text=fragment,
                replacement=rule.redaction_token,
            ))

    # --- Apply replacements (right-to-left to preserve offsets) ---
    result = text
    for start, end, token in sorted(regions, reverse=True):
        result = result[:start] + token + result[end:]

    return ScanResult(
        original_text=text,
        redacted_text=result,
        categories_found=frozenset(v.category for v in violations),
        violations=tuple(sorted(violations, key=lambda v: (v.start, v.category.rank))),
    )


class ContentFilter:
    """Outbound-message filter bound to one rule set."""

    __slots__ = ("ruleset",)

    def __init__(self, ruleset: PolicyRuleSet | None = None) -> None:
        self.ruleset = ruleset if ruleset is not None else _DEFAULT_RULESET

    def scan(self, text: str) -> ScanResult:
        return scan(text, self.ruleset)

    def scan_messages(
        self,
        messages: list,
        *,
        content_key: str = "content",
    ) -> list:
        """Redact a list of chat-style message dicts.

        Returns new dicts with content replaced by the redacted text.
        Items that are not dicts, or carry no string content, pass
        through unchanged.  Does NOT mutate the originals.
        """
        out: list = []
        for msg in messages:
            content = msg.get(content_key) if isinstance(msg, dict) else None
            if isinstance(content, str) and content:
                result = self.scan(content)
                out.append({**msg, content_key: result.redacted_text})
            else:
                out.append(msg)
        return out
