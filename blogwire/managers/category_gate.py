"""
Holds back operations until the blog's categories are known.
"""

import logging
import weakref
from collections import deque
from typing import Any, Callable, Deque, List, Tuple

from blogwire.models.category import CategoryEntry
from blogwire.utils.error_handler import BlogError


class CategoryGate:
    """
    Buffers operations of a client while its category list is empty.

    The first held operation triggers one list_categories call on the
    client; later ones queue behind it. When the list arrives every queued
    operation is replayed once, in the order it was held, and the gate
    disconnects from the client's signals. If the fetch fails every queued
    object is reported with the fetch's error.

    Once a list has been fetched in this client's lifetime the gate stays
    open, even if the blog has no categories at all.
    """

    def __init__(self, client: Any):
        self.client = client
        self._queue: Deque[Tuple[Callable[[Any], Any], weakref.ref]] = deque()
        self._fetching = False
        self.logging = logging.getLogger(__name__)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def is_open(self) -> bool:
        self.client.load_categories()
        return bool(self.client.categories) or self.client.categories_fetched

    def hold(self, replay: Callable[[Any], Any], obj: Any) -> bool:
        """
        Queue replay(obj) if the categories are not known yet.

        Returns:
            True if the operation was queued, False if the caller may go ahead
        """
        if self.is_open():
            return False

        self._queue.append((replay, weakref.ref(obj)))
        self.logging.debug(
            f"No categories cached yet, holding back operation ({len(self._queue)} queued)"
        )

        if not self._fetching:
            self._fetching = True
            self.client.listed_categories.connect(self._replay)
            self.client.categories_failed.connect(self._abandon)
            try:
                self.client.list_categories()
            except BlogError:
                self._disconnect()
                self._queue.pop()
                raise
        return True

    def _disconnect(self) -> None:
        self._fetching = False
        self.client.listed_categories.disconnect(self._replay)
        self.client.categories_failed.disconnect(self._abandon)

    def _drain(self) -> List[Any]:
        queued = list(self._queue)
        self._queue.clear()
        return queued

    def _replay(self, categories: List[CategoryEntry]) -> None:
        self._disconnect()
        queued = self._drain()
        self.logging.debug(f"Categories fetched, replaying {len(queued)} operations")

        for replay, ref in queued:
            obj = ref()
            if obj is None:
                continue
            try:
                replay(obj)
            except BlogError as e:
                self.client.report_error(obj, e, "replay")

    def _abandon(self, error: BlogError) -> None:
        self._disconnect()
        for _, ref in self._drain():
            obj = ref()
            if obj is not None:
                self.client.report_error(obj, error, "list_categories")
