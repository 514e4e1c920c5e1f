"""
Announcer - the public channel carrying stealth payment announcements.

On-chain this is an event log (ERC-5564 style). Here it is an ordered,
append-only sequence with subscriber callbacks. The log is public: it
stores announcements of every scheme, and scanners decide what to ignore.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List

from stealthkit.core.announcement import Announcement
from stealthkit.utils.logger import get_logger

logger = get_logger("announcer")

Subscriber = Callable[[int, Announcement], None]


class Announcer(ABC):
    """Ordered stream of announcements."""

    @abstractmethod
    def announce(self, announcement: Announcement) -> int:
        """Append an announcement; returns its index."""

    @abstractmethod
    def read(self, start: int = 0) -> List[Announcement]:
        """Announcements from index start onwards, in order."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryAnnouncer(Announcer):
    """Append-only in-process announcement log."""

    def __init__(self):
        self._log: List[Announcement] = []
        self._subscribers: List[Subscriber] = []

    def announce(self, announcement: Announcement) -> int:
        if not isinstance(announcement, Announcement):
            raise TypeError(f"Expected Announcement, got {type(announcement).__name__}")

        index = len(self._log)
        self._log.append(announcement)
        logger.debug(
            f"Announcement #{index}: scheme={announcement.scheme_id} "
            f"address={announcement.stealth_address}"
        )

        for callback in list(self._subscribers):
            callback(index, announcement)

        return index

    def read(self, start: int = 0) -> List[Announcement]:
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        return list(self._log[start:])

    def subscribe(self, callback: Subscriber) -> None:
        """Call callback(index, announcement) for every future announcement."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers.remove(callback)

    def __iter__(self) -> Iterator[Announcement]:
        return iter(list(self._log))

    def __len__(self) -> int:
        return len(self._log)
