# layers/review_queue.py
import logging
from typing import Callable, Iterable, List, Optional

from config_manager import REVIEW_QUEUE_KEY, RULES_KEY
from exceptions import InvalidUrlError
from models import ReviewEntry
from utils import extract_domain, now_ms
from .state_store import StateStore
from .tab_metadata import TabMetadataStore

logger = logging.getLogger(__name__)


class ReviewQueue:
    """Low-confidence classifications waiting for the user, FIFO, one entry per URL."""

    def __init__(self, store: StateStore, metadata: TabMetadataStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.metadata = metadata
        self.clock = clock

    def list_entries(self) -> List[ReviewEntry]:
        return [ReviewEntry.from_dict(entry) for entry in self.store.get(REVIEW_QUEUE_KEY, [])]

    def enqueue(self, url: str, guess: str) -> bool:
        """
        Queue `url` for review.

        Returns:
            False when the URL is already queued or a rule covers its domain.

        Raises:
            InvalidUrlError: if the URL has no domain.
        """
        domain = extract_domain(url)
        with self.store.transaction(REVIEW_QUEUE_KEY, RULES_KEY) as state:
            queue = state[REVIEW_QUEUE_KEY] or []
            if domain in (state[RULES_KEY] or {}):
                return False
            if any(entry["url"] == url for entry in queue):
                return False
            queue.append(ReviewEntry(url=url, ai_guess=guess, timestamp=self.clock()).to_dict())
            state[REVIEW_QUEUE_KEY] = queue
        logger.info(f"Queued {url} for review (guess: {guess})")
        return True

    def resolve(self, url: str, category: str, open_tab_ids: Iterable[int]) -> List[int]:
        """
        Apply the user's answer for a queued URL.

        Removes the entry, upserts a rule for the URL's domain, and sets the
        category on every open tab showing the URL. An unparseable URL still
        updates the queue and the tabs; only the rule is skipped.

        Returns:
            Ids of the tabs that were updated.
        """
        domain: Optional[str]
        try:
            domain = extract_domain(url)
        except InvalidUrlError as e:
            logger.warning(f"No rule created for review of {url}: {e}")
            domain = None

        with self.store.transaction(REVIEW_QUEUE_KEY, RULES_KEY) as state:
            state[REVIEW_QUEUE_KEY] = [entry for entry in state[REVIEW_QUEUE_KEY] or [] if entry["url"] != url]
            if domain:
                rules = state[RULES_KEY] or {}
                rules[domain] = category
                state[RULES_KEY] = rules
            updated = self.metadata.propagate_category(url, category, open_tab_ids)

        logger.info(f"Review resolved: {url} -> {category} ({len(updated)} open tabs updated)")
        return updated
