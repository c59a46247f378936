# productivity_tracker.py
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from category_classifier import CategoryRuleEngine
from config import FALLBACK_CATEGORY, REVIEW_CONFIDENCE_THRESHOLD
from config_manager import RULES_KEY, USER_CATEGORIES_KEY, export_rules, import_rules
from exceptions import DuplicateNameError, EmptyNameError, InvalidUrlError, UnknownCategoryError
from layers.review_queue import ReviewQueue
from layers.state_store import StateStore
from models import Rule, TabRecord
from Providers.classifier_adapter import ClassifierAdapter

logger = logging.getLogger(__name__)


@dataclass
class ClassificationOutcome:
    """Categories decided for one page, plus where they came from."""
    ai_category: str
    user_category: Optional[str]
    source: str  # rule, user, classifier or fallback
    confidence: float = 0.0
    queued_for_review: bool = False

    @property
    def effective_category(self) -> str:
        return self.user_category or self.ai_category


class ProductivityTracker:
    """
    Decides a page's category with this priority:
    1. User rules (authoritative, the classifier is never asked)
    2. The classifier, when page text is long enough and it is available
    3. The category the tab already had, or 'Others'
    """

    def __init__(
        self,
        store: StateStore,
        review_queue: ReviewQueue,
        classifier: Optional[ClassifierAdapter] = None,
        rule_engine: Optional[CategoryRuleEngine] = None,
    ):
        self.store = store
        self.review_queue = review_queue
        self.classifier = classifier or ClassifierAdapter()
        self.rule_engine = rule_engine or CategoryRuleEngine()

    def classify(self, url: str, text: str = "", existing: Optional[TabRecord] = None) -> ClassificationOutcome:
        """
        Classify a page. Never raises for bad URLs or classifier failures;
        those degrade to the fallback category.

        The classifier call can be slow and is made without holding the
        store lock.
        """
        prior_user = existing.user_category if existing else None

        by_rule = self.rule_engine.classify_by_rule(url, self.list_rules())
        if by_rule:
            return ClassificationOutcome(ai_category=by_rule, user_category=by_rule, source="rule", confidence=1.0)

        # an explicit user choice already decides the tab; the classifier is not asked
        guess = self.classifier.classify(text) if prior_user is None else None
        if guess is None:
            prior_ai = existing.ai_category if existing else None
            return ClassificationOutcome(ai_category=prior_ai or FALLBACK_CATEGORY, user_category=prior_user,
                                         source="user" if prior_user else "fallback")

        outcome = ClassificationOutcome(ai_category=guess.category, user_category=prior_user,
                                        source="classifier", confidence=guess.confidence)
        if guess.confidence < REVIEW_CONFIDENCE_THRESHOLD:
            try:
                outcome.queued_for_review = self.review_queue.enqueue(url, guess.category)
            except InvalidUrlError as e:
                logger.warning(f"Could not queue {url} for review: {e}")
                outcome.ai_category = FALLBACK_CATEGORY
        return outcome

    # ==================== CATEGORIES ====================

    def list_categories(self) -> List[str]:
        return self.store.get(USER_CATEGORIES_KEY, [])

    def require_category(self, category: str) -> str:
        """Return the stored spelling of `category`, matched case-insensitively."""
        match = next((name for name in self.list_categories() if name.lower() == (category or "").strip().lower()), None)
        if match is None:
            raise UnknownCategoryError(f"Unknown category: {category}")
        return match

    def add_category(self, name: str) -> List[str]:
        """Add a custom category. Categories are never removed."""
        name = (name or "").strip()
        if not name:
            raise EmptyNameError("Category name cannot be empty.")
        with self.store.transaction(USER_CATEGORIES_KEY) as state:
            categories = state[USER_CATEGORIES_KEY] or []
            if any(existing.lower() == name.lower() for existing in categories):
                raise DuplicateNameError(f"Category '{name}' already exists.")
            categories.append(name)
            state[USER_CATEGORIES_KEY] = categories
        logger.info(f"Custom category added: {name}")
        return categories

    # ==================== RULES ====================

    def list_rules(self) -> Dict[str, str]:
        return self.store.get(RULES_KEY, {})

    def add_rule(self, pattern: str, category: str) -> Rule:
        """Add or replace the rule for `pattern`."""
        pattern = (pattern or "").strip()
        if not pattern:
            raise EmptyNameError("Rule pattern cannot be empty.")
        category = self.require_category(category)
        with self.store.transaction(RULES_KEY) as state:
            rules = state[RULES_KEY] or {}
            rules[pattern] = category
            state[RULES_KEY] = rules
        logger.info(f"Rule added: {pattern} -> {category}")
        return Rule(pattern, category)

    def remove_rule(self, pattern: str) -> bool:
        with self.store.transaction(RULES_KEY) as state:
            rules = state[RULES_KEY] or {}
            removed = rules.pop((pattern or "").strip(), None) is not None
            state[RULES_KEY] = rules
        if removed:
            logger.info(f"Rule removed: {pattern}")
        return removed

    def export_rules(self, file_path: str) -> int:
        """Backup rules to a JSON file"""
        rules = self.list_rules()
        export_rules(file_path, rules)
        return len(rules)

    def import_rules(self, file_path: str, replace: bool = False) -> int:
        """Load rules from backup, merged over the current ones unless `replace`."""
        imported = import_rules(file_path)
        with self.store.transaction(RULES_KEY) as state:
            rules = {} if replace else (state[RULES_KEY] or {})
            rules.update(imported)
            state[RULES_KEY] = rules
        logger.info(f"Imported {len(imported)} rules from {file_path}")
        return len(imported)

    def get_stats(self) -> Dict:
        """Get usage statistics"""
        rules = self.list_rules()
        rules_count: Dict[str, int] = {}
        for category in rules.values():
            rules_count[category] = rules_count.get(category, 0) + 1
        return {
            "rules_total": len(rules),
            "rules_count": rules_count,
            "categories": len(self.list_categories()),
            "classifier_available": self.classifier.is_available,
        }
