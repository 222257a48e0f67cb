"""Presidio-backed matchers, an alternative to the built-in regexes.

Uses Presidio's predefined pattern recognizers (email, phone, URL) directly,
so no spaCy model is needed.  Install with the ``presidio`` extra.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable

from .errors import PolicyConfigError
from .patterns import DEFAULT_ALLOW_LIST, DEFAULT_TOKENS, KeywordMatcher, OFF_PLATFORM_KEYWORDS
from .types import Category, PolicyRule, PolicyRuleSet

if TYPE_CHECKING:
    from presidio_analyzer import EntityRecognizer

# Presidio entity name for each redacting category
ENTITIES: dict[Category, str] = {
    Category.EMAIL: "EMAIL_ADDRESS",
    Category.PHONE: "PHONE_NUMBER",
    Category.URL: "URL",
}

# Lazy cache — don't import presidio until first use
_recognizers: dict[tuple[str, str], EntityRecognizer] = {}


def _get_recognizer(entity: str, language: str) -> EntityRecognizer:
    key = (entity, language)
    if key not in _recognizers:
        from presidio_analyzer.predefined_recognizers import (
            EmailRecognizer,
            PhoneRecognizer,
            UrlRecognizer,
        )

        factories = {
            "EMAIL_ADDRESS": EmailRecognizer,
            "PHONE_NUMBER": PhoneRecognizer,
            "URL": UrlRecognizer,
        }
        if entity not in factories:
            raise ValueError(f"unsupported Presidio entity: {entity}")
        _recognizers[key] = factories[entity](supported_language=language)
    return _recognizers[key]


class PresidioMatcher:
    """Matcher that delegates to one Presidio recognizer."""

    __slots__ = ("entity", "language", "score_threshold")

    def __init__(self, entity: str, *, language: str = "en", score_threshold: float = 0.5) -> None:
        self.entity = entity
        self.language = language
        self.score_threshold = score_threshold

    def find_spans(self, text: str) -> list[tuple[int, int]]:
        recognizer = _get_recognizer(self.entity, self.language)
        results = recognizer.analyze(text=text, entities=[self.entity], nlp_artifacts=None)
        return sorted(
            (r.start, r.end)
            for r in results or []
            if r.entity_type == self.entity and r.score >= self.score_threshold
        )

    def __repr__(self) -> str:
        return f"PresidioMatcher({self.entity!r})"


def presidio_ruleset(
    *,
    allow_list: Iterable[str] = DEFAULT_ALLOW_LIST,
    language: str = "en",
    score_threshold: float = 0.5,
    tokens: dict[Category, str] | None = None,
    keywords: Iterable[str] = OFF_PLATFORM_KEYWORDS,
    redact_keywords: bool = False,
) -> PolicyRuleSet:
    """Presidio recognizers for email/phone/url plus the keyword phrase list."""
    # Load recognizers now so a missing install fails here, not inside scan()
    try:
        for entity in ENTITIES.values():
            _get_recognizer(entity, language)
    except ImportError as exc:
        raise PolicyConfigError(
            "engine 'presidio' needs presidio-analyzer: pip install 'content-policy[presidio]'"
        ) from exc
    tok = {**DEFAULT_TOKENS, **(tokens or {})}
    rules = [
        PolicyRule(
            f"presidio-{category.value}",
            category,
            PresidioMatcher(entity, language=language, score_threshold=score_threshold),
            tok[category],
        )
        for category, entity in ENTITIES.items()
    ]
    rules.append(PolicyRule(
        "off-platform-keywords",
        Category.KEYWORD,
        KeywordMatcher(keywords),
        tok[Category.KEYWORD] if redact_keywords else None,
    ))
    return PolicyRuleSet(rules=tuple(rules), allow_list=frozenset(allow_list))
