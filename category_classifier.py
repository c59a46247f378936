# category_classifier.py
import logging
import re
from typing import Dict, Iterable, List, Optional, Union

from models import Rule

logger = logging.getLogger(__name__)

RuleSet = Union[Dict[str, str], Iterable[Rule]]


def pattern_to_regex(pattern: str) -> str:
    """Literal dots, '*' as a wildcard; any other regex syntax in the pattern stays live."""
    return pattern.replace('.', r'\.').replace('*', '.*')


class CategoryRuleEngine:
    """Resolves a URL to a category using the user's domain/pattern rules."""

    def __init__(self):
        self._compiled: Dict[str, Optional[re.Pattern]] = {}

    def _compile(self, pattern: str) -> Optional[re.Pattern]:
        if pattern not in self._compiled:
            try:
                self._compiled[pattern] = re.compile(pattern_to_regex(pattern))
            except re.error as e:
                logger.warning(f"Invalid rule pattern '{pattern}' skipped: {e}")
                self._compiled[pattern] = None
        return self._compiled[pattern]

    def matches(self, pattern: str, url: str) -> bool:
        if not pattern:
            return False
        if pattern in url:
            return True
        regex = self._compile(pattern)
        return bool(regex and regex.search(url))

    def matching_rules(self, url: str, rules: RuleSet) -> List[Rule]:
        """Every rule matching the URL, in stored order."""
        return [rule for rule in _as_rules(rules) if self.matches(rule.pattern, url)]

    def classify_by_rule(self, url: str, rules: RuleSet) -> Optional[str]:
        """
        Returns the category of the best matching rule, or None.

        When several patterns match, the longest one wins; patterns of equal
        length keep their stored order. A pattern that does not compile is
        treated as a non-match.
        """
        if not url:
            return None
        best: Optional[Rule] = None
        for rule in self.matching_rules(url, rules):
            if best is None or len(rule.pattern) > len(best.pattern):
                best = rule
        return best.category if best else None


def _as_rules(rules: RuleSet) -> List[Rule]:
    if isinstance(rules, dict):
        return [Rule(pattern, category) for pattern, category in rules.items()]
    return list(rules)
