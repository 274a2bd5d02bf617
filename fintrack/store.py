"""Per-user transaction document store with a live query subscription.

Every successful write publishes ``COLLECTION_CHANGED`` on the event bus;
subscribers of the affected user receive the full current list, never a diff.
The store is shared by every browser session, so ``live_query`` hands out one
LiveQuery per user until ``release`` drops it.
"""
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fintrack.database import TransactionDocument
from fintrack.documents import from_document, to_document
from fintrack.domain import Transaction
from fintrack.errors import PersistenceError
from fintrack.events import COLLECTION_CHANGED, Event, EventBus, Handler, event_bus
from fintrack.logger import get_logger

logger = get_logger(__name__)

Snapshot = Tuple[Transaction, ...]


class LiveQuery:
    """Holds the latest snapshot delivered to it; usable as a subscription callback."""

    def __init__(self):
        self.transactions: Snapshot = ()
        self.deliveries = 0

    def __call__(self, transactions: Snapshot) -> None:
        self.transactions = transactions
        self.deliveries += 1


class TransactionStore:

    def __init__(self, session_factory: sessionmaker, bus: EventBus = event_bus):
        self._session_factory = session_factory
        self._bus = bus
        self._lock = threading.RLock()
        self._handlers: Dict[Tuple[str, Callable], Handler] = {}
        self._live: Dict[str, LiveQuery] = {}
        self._unsubscribe: Dict[str, Callable[[], None]] = {}

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to %s transaction", action)
            raise PersistenceError(f"Failed to {action} transaction") from e
        finally:
            db.close()

    def _owned(self, db: Session, user_id: str, tx_id: str) -> TransactionDocument:
        doc = db.get(TransactionDocument, tx_id)
        if doc is None or doc.user_id != user_id:
            raise PersistenceError(f"Transaction {tx_id} not found")
        return doc

    def _notify(self, user_id: str, change: str, tx_id: str) -> None:
        self._bus.publish(COLLECTION_CHANGED, {"user_id": user_id, "change": change, "id": tx_id})

    def create(self, user_id: str, t: Transaction) -> str:
        tx_id = uuid4().hex
        with self._session("create") as db:
            db.add(TransactionDocument(id=tx_id, user_id=user_id, body=to_document(t)))
        logger.info("Created transaction %s for user %s", tx_id, user_id)
        self._notify(user_id, "added", tx_id)
        return tx_id

    def update(self, user_id: str, tx_id: str, t: Transaction) -> None:
        """Overwrite the given fields; fields absent from ``t`` (createdAt) are kept."""
        with self._session("update") as db:
            doc = self._owned(db, user_id, tx_id)
            doc.body = {**doc.body, **to_document(t)}
        logger.info("Updated transaction %s for user %s", tx_id, user_id)
        self._notify(user_id, "modified", tx_id)

    def delete(self, user_id: str, tx_id: str) -> None:
        with self._session("delete") as db:
            db.delete(self._owned(db, user_id, tx_id))
        logger.info("Deleted transaction %s for user %s", tx_id, user_id)
        self._notify(user_id, "removed", tx_id)

    def get(self, user_id: str, tx_id: str) -> Optional[Transaction]:
        with self._session("read") as db:
            doc = db.get(TransactionDocument, tx_id)
            if doc is None or doc.user_id != user_id:
                return None
            return from_document(doc.id, doc.body)

    def list_for_user(self, user_id: str) -> Snapshot:
        with self._session("read") as db:
            docs = db.query(TransactionDocument).filter(TransactionDocument.user_id == user_id).all()
            return tuple(from_document(d.id, d.body) for d in docs)

    def subscribe(self, user_id: str, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Deliver the user's full list now and after every change; returns an unsubscribe function.

        Subscribing the same callback for the same user again reuses the existing
        handler. A callback that raises is logged; the write that triggered it stands.
        """
        key = (user_id, callback)

        def _on_change(event: Event, payload: dict) -> None:
            if payload.get("user_id") != user_id:
                return
            try:
                callback(self.list_for_user(user_id))
            except Exception:
                logger.exception("Subscriber for user %s failed on %s", user_id, payload.get("change"))

        with self._lock:
            handler = self._handlers.get(key)
            created = handler is None
            if created:
                handler = _on_change
                self._handlers[key] = handler
                self._bus.subscribe(COLLECTION_CHANGED, handler)

        def unsubscribe() -> None:
            with self._lock:
                if self._handlers.get(key) is handler:
                    del self._handlers[key]
                    self._bus.unsubscribe(COLLECTION_CHANGED, handler)

        try:
            callback(self.list_for_user(user_id))
        except Exception:
            if created:
                unsubscribe()
            raise
        return unsubscribe

    def live_query(self, user_id: str) -> LiveQuery:
        """The one shared LiveQuery for ``user_id``, subscribed on first use."""
        with self._lock:
            live = self._live.get(user_id)
            if live is not None:
                return live
            live = LiveQuery()
            self._unsubscribe[user_id] = self.subscribe(user_id, live)
            self._live[user_id] = live
            return live

    def release(self, user_id: str) -> None:
        with self._lock:
            self._live.pop(user_id, None)
            unsubscribe = self._unsubscribe.pop(user_id, None)
            if unsubscribe:
                unsubscribe()
