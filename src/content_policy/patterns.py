"""Built-in detectors for off-platform contact sharing.

Regexes catch structured contact details (emails, phone numbers, URLs);
a phrase list catches requests to move the conversation elsewhere.
Quantifiers are bounded, and the one open-ended run (the email local
part) is anchored at its start, so scanning stays linear on hostile input.
"""

from __future__ import annotations
import re
from typing import Iterable, Protocol, runtime_checkable

from .types import Category, PolicyRule, PolicyRuleSet

EMAIL_TOKEN = "***EMAIL REMOVED***"
PHONE_TOKEN = "***PHONE NUMBER REMOVED***"
URL_TOKEN = "***URL REMOVED***"
KEYWORD_TOKEN = "***CONTACT REQUEST REMOVED***"

DEFAULT_TOKENS: dict[Category, str] = {
    Category.EMAIL: EMAIL_TOKEN,
    Category.PHONE: PHONE_TOKEN,
    Category.URL: URL_TOKEN,
    Category.KEYWORD: KEYWORD_TOKEN,  # applied only when keywords redact
}

# The platform's own domain is never treated as an external link
DEFAULT_ALLOW_LIST: frozenset[str] = frozenset({"donezo.com"})

EMAIL_PATTERN = re.compile(
    # anchored at the start of the local-part run so a long one is taken whole
    r"(?<![a-zA-Z0-9._%+\-])[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]{1,253}\.[a-zA-Z]{2,63}"
)

# NANP: area code NXX without N9X/N11, bare exchange NXX without N11.
# After a full area code any three digits are taken as the exchange.
_AREA = r"(?:[2-9]1[02-9]|[2-9][02-8]1|[2-9][02-8][02-9])"
_EXCHANGE = r"(?:[2-9]1[02-9]|[2-9][02-9]1|[2-9][02-9]{2})"
_SEP = r"\s{0,3}(?:[.\-]\s{0,3})?"

PHONE_PATTERN = re.compile(
    rf"""
    (?:
        (?:\+?1{_SEP})?                          # country code
        (?:\(\s{{0,3}}{_AREA}\s{{0,3}}\)|{_AREA})  # area code
        {_SEP}
        [0-9]{{3}}
    |
        {_EXCHANGE}
    )
    {_SEP}
    [0-9]{{4}}
    (?:\s{{0,3}}(?:\#|x\.?|ext\.?|extension)\s{{0,3}}[0-9]{{1,6}})?   # extension
    """,
    re.VERBOSE,
)

URL_PATTERN = re.compile(
    r"(?:https?://|www\.)[^\s.]{1,253}\.\S{2,2048}"
)

OFF_PLATFORM_KEYWORDS: tuple[str, ...] = (
    "text me",
    "call me",
    "email me",
    "contact me",
    "off platform",
    "outside app",
    "chat outside",
    "my number",
    "my email",
    "my contact",
    "whatsapp",
    "telegram",
    "signal",
    "offline",
    "direct contact",
)


@runtime_checkable
class Matcher(Protocol):
    """Anything that can report the spans it detects in a text."""

    def find_spans(self, text: str) -> list[tuple[int, int]]: ...


class RegexMatcher:
    """Matcher backed by a single regular expression."""

    __slots__ = ("pattern",)

    def __init__(self, pattern: str | re.Pattern, flags: int = 0) -> None:
        self.pattern = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)

    def find_spans(self, text: str) -> list[tuple[int, int]]:
        return [m.span() for m in self.pattern.finditer(text)]

    def __repr__(self) -> str:
        return f"RegexMatcher({self.pattern.pattern!r})"


class KeywordMatcher:
    """Case-insensitive phrase containment. Reports every occurrence."""

    __slots__ = ("phrases",)

    def __init__(self, phrases: Iterable[str]) -> None:
        # dict.fromkeys keeps first-seen order while dropping duplicates
        self.phrases: tuple[str, ...] = tuple(
            dict.fromkeys(p.lower() for p in phrases if p.strip())
        )

    def find_spans(self, text: str) -> list[tuple[int, int]]:
        # lower() can change length for a few code points; scan the
        # lowered text only when offsets still line up with the original
        lowered = text.lower()
        if len(lowered) != len(text):
            lowered = "".join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text)
        spans: list[tuple[int, int]] = []
        for phrase in self.phrases:
            idx = lowered.find(phrase)
            while idx != -1:
                spans.append((idx, idx + len(phrase)))
                idx = lowered.find(phrase, idx + 1)
        return sorted(spans)

    def __repr__(self) -> str:
        return f"KeywordMatcher({len(self.phrases)} phrases)"


def default_rules(
    *,
    tokens: dict[Category, str] | None = None,
    keywords: Iterable[str] = OFF_PLATFORM_KEYWORDS,
    redact_keywords: bool = False,
) -> tuple[PolicyRule, ...]:
    """The built-in email, phone, url and keyword rules."""
    tok = {**DEFAULT_TOKENS, **(tokens or {})}
    return (
        PolicyRule("email", Category.EMAIL, RegexMatcher(EMAIL_PATTERN), tok[Category.EMAIL]),
        PolicyRule("phone", Category.PHONE, RegexMatcher(PHONE_PATTERN), tok[Category.PHONE]),
        PolicyRule("url", Category.URL, RegexMatcher(URL_PATTERN), tok[Category.URL]),
        PolicyRule(
            "off-platform-keywords",
            Category.KEYWORD,
            KeywordMatcher(keywords),
            tok[Category.KEYWORD] if redact_keywords else None,
        ),
    )


def default_ruleset(allow_list: Iterable[str] = DEFAULT_ALLOW_LIST) -> PolicyRuleSet:
    """Built-in rules with the platform's own domain allow-listed."""
    return PolicyRuleSet(rules=default_rules(), allow_list=frozenset(allow_list))
