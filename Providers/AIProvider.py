import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from config import BASE_CATEGORIES, PROVIDER_HTTP_TIMEOUT
from models import Classification

logger = logging.getLogger(__name__)

# Output labels the providers are asked to choose from
CATEGORY_LABELS: List[str] = list(BASE_CATEGORIES)

PROMPT_TEMPLATE = """
Classify this web page for productivity tracking.
Reply ONLY with a JSON object: {{"category": "<label>", "confidence": <0..1>}}
Labels:
- Work: jobs, coding, documents, project tools (e.g., GitHub, Jira)
- Learning: courses, documentation, tutorials (e.g., MDN, Coursera)
- Social: social networks and feeds (e.g., Reddit, Instagram)
- Entertainment: video, music, games (e.g., YouTube, Netflix)
- Shopping: stores and deals (e.g., Amazon, eBay)
- Neutral: utilities, search, weather, mail
- Others: anything else

Page text: {text}
"""


class AIProvider(ABC):
    """Abstract base class for AI providers"""

    def __init__(self, api_key: str, model_name: Optional[str] = None, timeout: int = PROVIDER_HTTP_TIMEOUT):
        self.api_key = api_key
        self.model_name = model_name or self.default_model
        self.timeout = timeout

    default_model: str = ""

    @abstractmethod
    def classify(self, text: str) -> Optional[Classification]:
        """Return a category guess with confidence, or None if the provider failed."""
        pass

    def build_prompt(self, text: str) -> str:
        return PROMPT_TEMPLATE.format(text=text)

    def parse_answer(self, answer: str) -> Optional[Classification]:
        """
        Parse the model's reply.

        Accepts the JSON object asked for in the prompt, or a bare label
        (confidence 0 then, so it always lands in the review queue).
        """
        answer = answer.strip().strip("`")
        if answer.startswith("json"):
            answer = answer[4:].strip()
        try:
            payload: Dict = json.loads(answer)
            category = str(payload.get("category", "")).strip()
            confidence = float(payload.get("confidence", 0.0))
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError):
            category, confidence = answer.strip('". '), 0.0

        label = next((name for name in CATEGORY_LABELS if name.lower() == category.lower()), None)
        if label is None:
            logger.warning(f"{type(self).__name__} returned an unknown label: {answer!r}")
            return None
        return Classification(category=label, confidence=min(max(confidence, 0.0), 1.0))
