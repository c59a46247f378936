import logging
from typing import Optional

import requests

from models import Classification
from .AIProvider import AIProvider

logger = logging.getLogger(__name__)


class GroqProvider(AIProvider):
    """Groq provider (fast inference)"""

    default_model = "llama-3.1-8b-instant"
    base_url = "https://api.groq.com/openai/v1/chat/completions"

    def classify(self, text: str) -> Optional[Classification]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model_name,
            "messages": [{
                "role": "user",
                "content": self.build_prompt(text)
            }],
            "temperature": 0.1,
            "max_tokens": 30
        }

        try:
            response = requests.post(self.base_url, headers=headers, json=data, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
            answer = result['choices'][0]['message']['content']
            return self.parse_answer(answer)
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            logger.warning(f"Groq Error: {e}")
        return None
