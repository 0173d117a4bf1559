import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from firebase_admin import firestore

from .config import settings
from .time_utils import as_utc

logger = logging.getLogger(__name__)


class SweepLease:
    """
    Time-bounded mutual exclusion between overlapping sweep invocations.

    The lease is a single Firestore document holding the holder ID and an
    expiry. It is taken inside a transaction, so two invocations racing for
    it cannot both succeed. An expired lease can be taken over, which covers
    invocations that died without releasing.
    """

    def __init__(self,
                 firestore_db,
                 holder: Optional[str] = None,
                 collection: Optional[str] = None,
                 document: Optional[str] = None,
                 duration_seconds: Optional[int] = None):
        self.db = firestore_db
        self.holder = holder or str(uuid.uuid4())
        self.duration = timedelta(seconds=duration_seconds or settings.sweep_lease_seconds)
        self.ref = self.db.collection(collection or settings.sweep_lease_collection).document(
            document or settings.sweep_lease_document
        )
        self.held = False

    def acquire(self, now: datetime) -> bool:
        """
        Try to take the lease.

        Args:
            now: Current time, used to judge whether an existing lease expired

        Returns:
            True if this holder now owns the lease, False otherwise
        """
        holder = self.holder
        now = as_utc(now)
        expires_at = now + self.duration
        transaction = self.db.transaction()

        @firestore.transactional
        def try_acquire(transaction, lease_ref):
            snapshot = lease_ref.get(transaction=transaction)
            if snapshot.exists:
                lease = snapshot.to_dict() or {}
                current_holder = lease.get('holder')
                current_expiry = lease.get('expiresAt')
                if (current_holder != holder
                        and isinstance(current_expiry, datetime)
                        and as_utc(current_expiry) > now):
                    logger.info(f"Sweep lease held by {current_holder} until {current_expiry}")
                    return False
            transaction.set(lease_ref, {
                'holder': holder,
                'acquiredAt': now,
                'expiresAt': expires_at,
            })
            return True

        self.held = try_acquire(transaction, self.ref)
        if self.held:
            logger.info(f"Sweep lease acquired by {holder} until {expires_at}")
        return self.held

    def release(self) -> None:
        """Give the lease up if this holder still owns it."""
        if not self.held:
            return

        holder = self.holder
        transaction = self.db.transaction()

        @firestore.transactional
        def try_release(transaction, lease_ref):
            snapshot = lease_ref.get(transaction=transaction)
            if snapshot.exists and (snapshot.to_dict() or {}).get('holder') == holder:
                transaction.delete(lease_ref)

        try:
            try_release(transaction, self.ref)
            logger.info(f"Sweep lease released by {holder}")
        except Exception as e:
            # The lease still expires on its own
            logger.error(f"Error releasing sweep lease: {str(e)}")
        finally:
            self.held = False
