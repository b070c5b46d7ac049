"""
Flux de changements des commentaires + synchronisation de l'état local d'une page draft.

ChangeFeed: pub/sub en mémoire, filtré par document. Chaque abonnement livre
ses events sur la boucle asyncio de l'abonné (ou directement si l'abonné n'a
pas de boucle). Livraison "at least once": la réconciliation est idempotente.
"""

import asyncio
import itertools
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class CommentEvent:
    type: EventType
    document_id: str
    new: Optional[dict] = None  # ligne après insert/update
    old: Optional[dict] = None  # ligne supprimée (au moins l'id)

    @property
    def comment_id(self):
        row = self.new if self.new is not None else self.old
        return row.get("id") if row else None

    def to_dict(self) -> dict:
        return {"type": self.type.value, "new": self.new, "old": self.old}


def reconcile(comments: List[dict], event: CommentEvent) -> List[dict]:
    """Applique un event à la liste locale (idempotent, ne modifie pas l'entrée)"""
    comment_id = event.comment_id
    if event.type == EventType.INSERT:
        if any(c["id"] == comment_id for c in comments):
            return comments
        return comments + [event.new]
    if event.type == EventType.UPDATE:
        return [event.new if c["id"] == comment_id else c for c in comments]
    if event.type == EventType.DELETE:
        return [c for c in comments if c["id"] != comment_id]
    return comments


class Subscription:
    def __init__(self, feed: "ChangeFeed", subscription_id: int, document_id: str,
                 callback: Callable[[CommentEvent], None], loop: Optional[asyncio.AbstractEventLoop]):
        self.feed = feed
        self.id = subscription_id
        self.document_id = document_id
        self.callback = callback
        self.loop = loop
        self.closed = False

    def deliver(self, event: CommentEvent) -> None:
        if self.closed:
            return
        if self.loop is None:
            self._dispatch(event)
        elif not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self._dispatch, event)

    def _dispatch(self, event: CommentEvent) -> None:
        # peut arriver après close() si l'event était déjà en file
        if not self.closed:
            self.callback(event)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed._remove(self.id)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class ChangeFeed:
    def __init__(self):
        self._subscriptions = {}
        self._ids = itertools.count(1)
        # publish() est appelé depuis le threadpool des routes sync
        self._lock = threading.Lock()

    def subscribe(self, document_id: str, callback: Callable[[CommentEvent], None]) -> Subscription:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        with self._lock:
            subscription = Subscription(self, next(self._ids), document_id, callback, loop)
            self._subscriptions[subscription.id] = subscription
        logger.debug(f"Subscription {subscription.id} opened for document {document_id}")
        return subscription

    def publish(self, event: CommentEvent) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.document_id == event.document_id]
        for subscription in targets:
            subscription.deliver(event)

    def subscriber_count(self, document_id: str = None) -> int:
        with self._lock:
            return sum(
                1 for s in self._subscriptions.values()
                if document_id is None or s.document_id == document_id
            )

    def _remove(self, subscription_id: int) -> None:
        with self._lock:
            self._subscriptions.pop(subscription_id, None)
        logger.debug(f"Subscription {subscription_id} released")


class SyncState(str, Enum):
    DISCONNECTED = "disconnected"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"


class LiveSyncController:
    """
    État des commentaires d'une page draft montée.

    Disconnected -> Subscribing -> Subscribed -> Disconnected (unmount).
    Tout ce qui arrive après unmount (events en retard, réponses d'API) est ignoré.
    """

    def __init__(self, feed: ChangeFeed, document_id: str, comments: List[dict] = None,
                 on_change: Callable[[CommentEvent], None] = None):
        self.feed = feed
        self.document_id = document_id
        self.on_change = on_change
        self.state = SyncState.DISCONNECTED
        self._comments = list(comments or [])
        self._subscription = None

    @property
    def comments(self) -> List[dict]:
        return list(self._comments)

    @property
    def mounted(self) -> bool:
        return self.state != SyncState.DISCONNECTED

    def _set_state(self, state: SyncState) -> None:
        logger.debug(f"Live sync {self.document_id}: {self.state.value} -> {state.value}")
        self.state = state

    def mount(self) -> None:
        if self.mounted:
            return
        self._set_state(SyncState.SUBSCRIBING)
        self._subscription = self.feed.subscribe(self.document_id, self.handle_event)
        self._set_state(SyncState.SUBSCRIBED)

    def resubscribe(self) -> None:
        """Reconnexion best effort: nouvel abonnement, l'état local est gardé"""
        if self._subscription is not None:
            self._subscription.close()
        self._set_state(SyncState.SUBSCRIBING)
        self._subscription = self.feed.subscribe(self.document_id, self.handle_event)
        self._set_state(SyncState.SUBSCRIBED)

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        if self.mounted:
            self._set_state(SyncState.DISCONNECTED)

    def _apply(self, event: CommentEvent) -> bool:
        updated = reconcile(self._comments, event)
        if updated == self._comments:
            return False
        self._comments = updated
        if self.on_change is not None:
            self.on_change(event)
        return True

    def load_snapshot(self, comments: List[dict]) -> None:
        """Snapshot lu après l'abonnement: il prime sur les events déjà reçus, sans notifier on_change"""
        merged = list(comments)
        for comment in self._comments:
            merged = reconcile(merged, CommentEvent(EventType.INSERT, self.document_id, new=comment))
        self._comments = merged

    def handle_event(self, event: CommentEvent) -> bool:
        if self.state != SyncState.SUBSCRIBED:
            logger.debug(f"Dropping {event.type.value} event for unmounted page {self.document_id}")
            return False
        return self._apply(event)

    def apply_response(self, event: CommentEvent) -> bool:
        """Réponse d'un appel API de l'utilisateur local (même réconciliation que le flux)"""
        if not self.mounted:
            return False
        return self._apply(event)

    def __enter__(self):
        self.mount()
        return self

    def __exit__(self, *exc):
        self.unmount()
