from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Toast:
    tone: str  # "success" | "error" | "info"
    message: str


class ToastQueue:
    """Transient notifications waiting to be shown."""

    def __init__(self, limit: int = 50):
        self._items: Deque[Toast] = deque(maxlen=limit)

    def show(self, tone: str, message: str) -> Toast:
        toast = Toast(tone, message)
        self._items.append(toast)
        log = logger.warning if tone == "error" else logger.info
        log("toast %s: %s", tone, message)
        return toast

    def drain(self) -> List[Toast]:
        items = list(self._items)
        self._items.clear()
        return items

    def peek(self) -> List[Toast]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
