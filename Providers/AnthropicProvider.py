import logging
from typing import Optional

import requests

from models import Classification
from .AIProvider import AIProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider"""

    default_model = "claude-3-haiku-20240307"
    base_url = "https://api.anthropic.com/v1/messages"

    def classify(self, text: str) -> Optional[Classification]:
        headers = {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "anthropic-version": "2023-06-01"
        }

        data = {
            "model": self.model_name,
            "max_tokens": 30,
            "messages": [{
                "role": "user",
                "content": self.build_prompt(text)
            }]
        }

        try:
            response = requests.post(self.base_url, headers=headers, json=data, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
            answer = result['content'][0]['text']
            return self.parse_answer(answer)
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            logger.warning(f"Anthropic Error: {e}")
        return None
