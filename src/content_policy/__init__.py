"""content-policy — keep marketplace conversations on the platform."""

from .filter import ContentFilter, scan
from .types import Category, PolicyRule, PolicyRuleSet, ScanResult, Violation
from .patterns import KeywordMatcher, Matcher, RegexMatcher, default_ruleset
from .config import build_ruleset, create_filter, load_config, load_from_yaml
from .errors import PolicyConfigError

__all__ = [
    "ContentFilter", "scan",
    "Category", "PolicyRule", "PolicyRuleSet", "ScanResult", "Violation",
    "Matcher", "RegexMatcher", "KeywordMatcher", "default_ruleset",
    "build_ruleset", "create_filter", "load_config", "load_from_yaml",
    "PolicyConfigError",
]
__version__ = "0.1.0"
