from abc import ABC, abstractmethod
from typing import Optional

from household_recipes.app.services.url_parsing.models import ParsedCaption


class CaptionParser(ABC):
    """Turns free caption text into a best-effort recipe."""

    platform: str = "generic"

    @abstractmethod
    def parse(self, text: str, fallback_title: Optional[str] = None) -> ParsedCaption:
        raise NotImplementedError
