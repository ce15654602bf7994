"""
In-process change feed.

Writers publish after their transaction commits. Two kinds of consumers:

- change handlers, `handler(before, after)`, called for every poll record
  update with the snapshots on either side of the write;
- live views, `callback(snapshot)`, subscribed to one poll or to one poll's
  comment list and pushed the full updated snapshot on each change.

Deliveries for a single entity are serialized. Handlers get every write;
a poll snapshot older than one live views already got (its monotonic
counters went backwards) is not pushed to them. Nothing is ordered across entities. A failing
consumer is logged and never affects the writer or the other consumers.
"""
import logging
import threading
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Snapshot = dict[str, Any]
ChangeHandler = Callable[[Snapshot, Snapshot], Any]

_STATUS_RANK = {"active": 0, "resolved": 1}


def _progress_key(snapshot: Snapshot) -> tuple[int, int, int]:
    return (
        _STATUS_RANK.get(snapshot.get("status"), 0),
        snapshot.get("total_votes", 0),
        snapshot.get("comment_count", 0),
    )


def _is_stale(key, last_key) -> bool:
    return last_key is not None and all(a <= b for a, b in zip(key, last_key)) and key != last_key


class Subscription:
    def __init__(self, feed: "ChangeFeed", topic: tuple[str, str], callback: Callable):
        self._feed = feed
        self._topic = topic
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Stop further deliveries. Nothing in flight needs cancelling."""
        if self.active:
            self.active = False
            self._feed._remove(self._topic, self)


class ChangeFeed:
    def __init__(self):
        self._handlers: list[ChangeHandler] = []
        self._subscribers: dict[tuple[str, str], list[Subscription]] = defaultdict(list)
        self._last_keys: dict[str, tuple[int, int, int]] = {}
        self._locks: dict[tuple[str, str], threading.RLock] = defaultdict(threading.RLock)
        self._registry_lock = threading.Lock()

    # -- registration ------------------------------------------------------

    def register(self, handler: ChangeHandler) -> ChangeHandler:
        """Add an `on_poll_change(before, after)` handler."""
        with self._registry_lock:
            self._handlers.append(handler)
        return handler

    def subscribe_poll(self, poll_id: str, callback: Callable[[Snapshot], Any]) -> Subscription:
        return self._subscribe(("poll", poll_id), callback)

    def subscribe_comments(self, poll_id: str, callback: Callable[[list], Any]) -> Subscription:
        return self._subscribe(("comments", poll_id), callback)

    def _subscribe(self, topic, callback) -> Subscription:
        sub = Subscription(self, topic, callback)
        with self._registry_lock:
            self._subscribers[topic].append(sub)
        return sub

    def _remove(self, topic, sub: Subscription) -> None:
        with self._registry_lock:
            subs = self._subscribers.get(topic, [])
            if sub in subs:
                subs.remove(sub)

    def _lock_for(self, topic) -> threading.RLock:
        with self._registry_lock:
            return self._locks[topic]

    # -- publishing --------------------------------------------------------

    def publish_poll_change(self, before: Snapshot, after: Snapshot) -> bool:
        """
        Deliver one committed poll update. Every handler sees every write;
        live views are skipped when the snapshot is older than one they already
        got. Returns False if the live-view delivery was dropped as stale.
        """
        poll_id = after["id"]
        topic = ("poll", poll_id)
        with self._lock_for(topic):
            with self._registry_lock:
                handlers = list(self._handlers)
                subs = list(self._subscribers.get(topic, []))

            for handler in handlers:
                try:
                    handler(before, after)
                except Exception:
                    logger.exception("Poll change handler %r failed for poll %s", handler, poll_id)

            key = _progress_key(after)
            if _is_stale(key, self._last_keys.get(poll_id)):
                logger.debug("Dropping stale snapshot for live views of poll %s", poll_id)
                return False
            self._last_keys[poll_id] = key
            self._deliver(subs, after, topic)
        return True

    def publish_comments(self, poll_id: str, comments: list) -> None:
        topic = ("comments", poll_id)
        with self._lock_for(topic):
            with self._registry_lock:
                subs = list(self._subscribers.get(topic, []))
            self._deliver(subs, comments, topic)

    def forget(self, poll_id: str) -> None:
        """Drop ordering state, locks and subscribers for a deleted poll."""
        with self._registry_lock:
            self._last_keys.pop(poll_id, None)
            for topic in (("poll", poll_id), ("comments", poll_id)):
                self._locks.pop(topic, None)
                self._subscribers.pop(topic, None)

    @staticmethod
    def _deliver(subs, payload, topic) -> None:
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.callback(payload)
            except Exception:
                logger.exception("Live subscriber failed for %s %s", *topic)
