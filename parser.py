# parser.py
import re
from dataclasses import dataclass
from typing import Optional

from config import MAX_EXTRACTED_TEXT
from utils import is_web_url

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class ExtractedPage:
    """Normalised page content handed to classification."""
    url: str
    title: str
    text: str
    display_title: str


class PageContentParser:
    """Turns a raw content-extraction payload into a structured page."""

    def __init__(self, max_text: int = MAX_EXTRACTED_TEXT):
        self.max_text = max_text

    def parse(self, url: str, title: Optional[str], text: Optional[str]) -> Optional[ExtractedPage]:
        """
        Normalises an extraction event.

        Returns:
            An ExtractedPage, or None for non-web pages (extension/internal
            pages are never classified).
        """
        if not is_web_url(url):
            return None
        clean_title = self.normalize(title or "")
        return ExtractedPage(
            url=url,
            title=clean_title,
            text=self.normalize(text or "")[:self.max_text],
            display_title=self._create_display_title(clean_title, url),
        )

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse runs of whitespace and trim."""
        return _WHITESPACE_RE.sub(" ", text).strip()

    def _create_display_title(self, title: str, url: str) -> str:
        """Title without a trailing ' - Site' segment, falling back to the URL."""
        parts = [part.strip() for part in title.split(" - ") if part.strip()]
        if len(parts) > 1:
            return " - ".join(parts[:-1])
        if parts:
            return parts[0]
        return url
