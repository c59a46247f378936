import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

from config import CLASSIFICATION_WORKERS, CLASSIFIER_TIMEOUT_SECONDS, MAX_CLASSIFIER_INPUT, MIN_TEXT_LENGTH
from exceptions import ClassifierUnavailableError
from models import Classification
from Providers.AIProvider import AIProvider

logger = logging.getLogger(__name__)


class ClassifierAdapter:
    """
    Wraps a provider behind a bounded call.

    `classify()` returns None whenever the capability is unavailable: no
    provider loaded, text too short, provider error, or timeout. Callers
    then fall back to 'Others'.
    """

    def __init__(self, provider: Optional[AIProvider] = None, timeout: float = CLASSIFIER_TIMEOUT_SECONDS):
        self.provider = provider
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=CLASSIFICATION_WORKERS, thread_name_prefix="classifier")

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    @staticmethod
    def has_enough_text(text: Optional[str]) -> bool:
        return bool(text) and len(text) > MIN_TEXT_LENGTH

    def classify(self, text: Optional[str]) -> Optional[Classification]:
        if not self.is_available or not self.has_enough_text(text):
            return None
        try:
            return self.classify_or_raise(text)
        except ClassifierUnavailableError as e:
            logger.warning(str(e))
            return None

    def classify_or_raise(self, text: str) -> Classification:
        """
        Ask the provider, waiting at most `timeout` seconds.

        Raises:
            ClassifierUnavailableError: no provider, provider failure, timeout
                or an answer that could not be used.
        """
        if not self.is_available:
            raise ClassifierUnavailableError("No classifier provider is loaded")

        future = self._executor.submit(self.provider.classify, text[:MAX_CLASSIFIER_INPUT])
        try:
            result = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            raise ClassifierUnavailableError(f"Classifier timed out after {self.timeout}s")
        except Exception as e:
            raise ClassifierUnavailableError(f"Classifier failed: {e}") from e

        if result is None:
            raise ClassifierUnavailableError("Classifier returned no usable answer")
        return result

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
