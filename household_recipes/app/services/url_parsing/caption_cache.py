"""In-flight result cache for the caption assist.

Entries are asyncio futures so concurrent identical requests share one pending call.
"""

import asyncio
from typing import Dict, Optional, Protocol


class CaptionCache(Protocol):
    def get(self, key: str) -> Optional[asyncio.Future]:
        ...

    def set(self, key: str, value: asyncio.Future) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryCaptionCache:
    def __init__(self) -> None:
        self._entries: Dict[str, asyncio.Future] = {}

    def get(self, key: str) -> Optional[asyncio.Future]:
        return self._entries.get(key)

    def set(self, key: str, value: asyncio.Future) -> None:
        self._entries[key] = value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


default_caption_cache = InMemoryCaptionCache()
