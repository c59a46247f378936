import logging
from typing import Optional

import requests

from models import Classification
from .AIProvider import AIProvider

logger = logging.getLogger(__name__)


class GeminiProvider(AIProvider):
    """Google Gemini provider"""

    default_model = "gemini-1.5-flash-latest"

    @property
    def base_url(self) -> str:
        return f"https://generativelanguage.googleapis.com/v1beta/models/{self.model_name}:generateContent"

    def classify(self, text: str) -> Optional[Classification]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }

        data = {
            "contents": [{
                "parts": [{
                    "text": self.build_prompt(text)
                }]
            }],
            "generationConfig": {
                "maxOutputTokens": 30,
                "temperature": 0.1
            }
        }

        try:
            response = requests.post(self.base_url, headers=headers, json=data, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
            answer = result['candidates'][0]['content']['parts'][0]['text']
            return self.parse_answer(answer)
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            logger.warning(f"Gemini Error: {e}")
        return None
