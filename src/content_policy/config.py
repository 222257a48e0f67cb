"""YAML/dict config loader for content-policy.

Supports loading from a YAML file or a plain dict (for embedding
in a larger application config).

Example YAML:

    content_policy:
      enabled: true
      engine: regex              # "regex" or "presidio"
      allow_list:
        - donezo.com
      tokens:
        email: "[email hidden]"
      extra_keywords:
        - discord
      redact_keywords: false
      rules:
        - name: discord-tag
          category: keyword
          pattern: "\\b\\w{2,32}#\\d{4}\\b"
"""

from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import PolicyConfigError
from .filter import ContentFilter
from .patterns import (
    DEFAULT_ALLOW_LIST,
    DEFAULT_TOKENS,
    OFF_PLATFORM_KEYWORDS,
    RegexMatcher,
    default_rules,
)
from .types import Category, PolicyRule, PolicyRuleSet

logger = logging.getLogger(__name__)

ENGINES = ("regex", "presidio")


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline).

    Idempotent: a dict this function returned normalizes to itself.
    """
    data = _mapping(data, "config")
    # Support nested under "content_policy" key or flat
    if "content_policy" in data:
        data = _mapping(data["content_policy"], "content_policy")

    keywords = data.get("keywords")
    return {
        "enabled": bool(data.get("enabled", True)),
        "engine": str(data.get("engine", "regex")).lower(),
        "language": str(data.get("language", "en")),
        "score_threshold": _number(data.get("score_threshold", 0.5), "score_threshold"),
        "allow_list": set(_strings(data.get("allow_list", DEFAULT_ALLOW_LIST), "allow_list")),
        "tokens": {
            _category(k): str(v) for k, v in _mapping(data.get("tokens"), "tokens").items()
        },
        "keywords": _strings(OFF_PLATFORM_KEYWORDS if keywords is None else keywords, "keywords")
        + _strings(data.get("extra_keywords"), "extra_keywords"),
        "redact_keywords": bool(data.get("redact_keywords", False)),
        "rules": _sequence(data.get("rules"), "rules"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise PolicyConfigError(f"invalid YAML in {path}: {exc}") from exc
    if raw is not None and not isinstance(raw, dict):
        raise PolicyConfigError(f"{path}: top level must be a mapping")
    return load_config(raw)


def build_ruleset(config: dict[str, Any]) -> PolicyRuleSet:
    """Build an immutable rule set from a raw or normalized config dict."""
    cfg = load_config(config)

    if not cfg["enabled"]:
        logger.info("content policy disabled; messages pass through unchanged")
        return PolicyRuleSet()

    engine = cfg["engine"]
    if engine == "regex":
        rules = default_rules(
            tokens=cfg["tokens"],
            keywords=cfg["keywords"],
            redact_keywords=cfg["redact_keywords"],
        )
    elif engine == "presidio":
        from .presidio_layer import presidio_ruleset
        rules = presidio_ruleset(
            language=cfg["language"],
            score_threshold=cfg["score_threshold"],
            tokens=cfg["tokens"],
            keywords=cfg["keywords"],
            redact_keywords=cfg["redact_keywords"],
        ).rules
    else:
        raise PolicyConfigError(f"unknown engine {engine!r}; expected one of {ENGINES}")

    custom = tuple(_build_rule(raw, cfg["tokens"]) for raw in cfg["rules"])
    ruleset = PolicyRuleSet(rules=rules + custom, allow_list=frozenset(cfg["allow_list"]))
    logger.info(
        "Loaded %d rules (%s engine, %d custom), allow-list: %s",
        len(ruleset.rules), engine, len(custom), sorted(ruleset.allow_list),
    )
    return ruleset


def create_filter(config: dict[str, Any] | None = None) -> ContentFilter:
    """Create a fully configured filter from a config dict."""
    return ContentFilter(build_ruleset(config or {}))


def _category(value: Any) -> Category:
    if isinstance(value, Category):
        return value
    try:
        return Category(str(value).lower())
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise PolicyConfigError(f"unknown category {value!r}; expected one of: {valid}") from None


def _build_rule(raw: Any, tokens: dict[Category, str]) -> PolicyRule:
    if not isinstance(raw, dict):
        raise PolicyConfigError(f"rule must be a mapping, got {type(raw).__name__}")
    category = _category(raw.get("category", ""))
    pattern = raw.get("pattern")
    if not pattern:
        raise PolicyConfigError(f"rule {raw.get('name', '?')!r} has no pattern")
    flags = re.IGNORECASE if raw.get("ignore_case", True) else 0
    try:
        matcher = RegexMatcher(str(pattern), flags)
    except re.error as exc:
        raise PolicyConfigError(f"rule {raw.get('name', '?')!r}: bad pattern: {exc}") from exc

    if "redaction_token" in raw:
        token = raw["redaction_token"]
    elif category is Category.KEYWORD:
        token = None   # keyword rules flag by default
    else:
        token = tokens.get(category, DEFAULT_TOKENS[category])

    return PolicyRule(
        name=str(raw.get("name") or f"custom-{category.value}"),
        category=category,
        matcher=matcher,
        redaction_token=None if token is None else str(token),
    )


def _mapping(value: Any, key: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PolicyConfigError(f"{key} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, key: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise PolicyConfigError(f"{key} must be a list, got {type(value).__name__}")
    return list(value)


def _strings(value: Any, key: str) -> list[str]:
    # A bare string is one entry, not a sequence of characters
    if isinstance(value, str):
        value = [value]
    items = _sequence(value, key)
    for item in items:
        if not isinstance(item, str):
            raise PolicyConfigError(f"{key} entries must be strings, got {item!r}")
    return items


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise PolicyConfigError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise PolicyConfigError(f"{key} must be a number, got {value!r}") from None
