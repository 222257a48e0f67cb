"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from .patterns import Matcher


class Category(str, Enum):
    """Kinds of policy-violating content, in application order."""

    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    KEYWORD = "keyword"

    @property
    def label(self) -> str:
        """Human-readable name shown to the sender."""
        return _LABELS[self]

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER: tuple[Category, ...] = (Category.EMAIL, Category.PHONE, Category.URL, Category.KEYWORD)

_LABELS: dict[Category, str] = {
    Category.EMAIL: "email",
    Category.PHONE: "phone",
    Category.URL: "url",
    Category.KEYWORD: "off-platform communication",
}


def in_order(categories: Iterable[Category]) -> tuple[Category, ...]:
    """Sort categories into canonical (email, phone, url, keyword) order."""
    return tuple(sorted(set(categories), key=lambda c: c.rank))


@dataclass(frozen=True, slots=True)
class PolicyRule:
    """A named detector bound to one category."""
    name: str
    category: Category
    matcher: Matcher
    redaction_token: str | None = None   # None = flag only, never redact

    @property
    def redacts(self) -> bool:
        return self.redaction_token is not None


@dataclass(frozen=True, slots=True)
class PolicyRuleSet:
    """Immutable rule configuration plus the URL domain allow-list."""
    rules: tuple[PolicyRule, ...] = ()
    allow_list: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(
            self, "allow_list", frozenset(d.strip().lower() for d in self.allow_list if d.strip())
        )

    def ordered_rules(self) -> Iterator[PolicyRule]:
        """Rules by category order; declaration order within a category."""
        return iter(sorted(self.rules, key=lambda r: r.category.rank))

    def is_allowed(self, url: str) -> bool:
        """True if the URL contains an allow-listed domain."""
        lowered = url.lower()
        return any(domain in lowered for domain in self.allow_list)

    def with_allow_list(self, domains: Iterable[str]) -> PolicyRuleSet:
        return replace(self, allow_list=frozenset(domains))

    def extend(self, *rules: PolicyRule) -> PolicyRuleSet:
        return replace(self, rules=self.rules + tuple(rules))


@dataclass(frozen=True, slots=True)
class Violation:
    """A single detected span."""
    category: Category
    rule: str              # name of the rule that matched
    start: int
    end: int
    text: str
    replacement: str | None = None   # None when the span was only flagged

    @property
    def redacted(self) -> bool:
        return self.replacement is not None


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Result of scanning one message."""
    original_text: str
    redacted_text: str
    categories_found: frozenset[Category] = frozenset()
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def has_violation(self) -> bool:
        return self.redacted_text != self.original_text

    @property
    def flagged(self) -> bool:
        """True when anything matched, including flag-only keyword hits."""
        return bool(self.categories_found)

    @property
    def categories(self) -> tuple[Category, ...]:
        return in_order(self.categories_found)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(c.label for c in self.categories)

    def to_dict(self) -> dict:
        return {
            "text": self.redacted_text,
            "has_violation": self.has_violation,
            "flagged": self.flagged,
            "categories": [c.value for c in self.categories],
            "labels": list(self.labels),
            "violations": [
                {
                    "category": v.category.value,
                    "rule": v.rule,
                    "start": v.start,
                    "end": v.end,
                    "text": v.text,
                    "redacted": v.redacted,
                }
                for v in self.violations
            ],
        }
