# site_audit/crawler/frontier.py
"""
Breadth-first crawl frontier: a FIFO queue of (url, depth) entries plus the
set of every URL that was ever accepted into it.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Set

from site_audit.crawler.models import FrontierEntry


class Frontier:
    """FIFO queue that accepts each URL at most once per crawl.

    URLs are expected in normalized form; membership is checked on
    :meth:`push`, so a URL can never sit in the queue twice.
    """

    def __init__(self) -> None:
        self._queue: Deque[FrontierEntry] = deque()
        self._seen: Set[str] = set()

    def push(self, url: str, depth: int) -> bool:
        """Enqueue *url* at *depth*; return False if it was seen before."""
        if url in self._seen:
            return False
        self._seen.add(url)
        self._queue.append(FrontierEntry(url, depth))
        return True

    def pop(self) -> FrontierEntry:
        """Remove and return the oldest entry. Raises IndexError when empty."""
        return self._queue.popleft()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __iter__(self) -> Iterator[FrontierEntry]:
        return iter(tuple(self._queue))

    @property
    def seen_count(self) -> int:
        return len(self._seen)
