import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from .config import settings
from .firebase_client import FirebaseClient
from .lease import SweepLease
from .models import MembershipRecord, MembershipStatus, SweepResult
from .time_utils import as_utc, utc_now

logger = logging.getLogger(__name__)


def is_expired(record: MembershipRecord, now: datetime) -> bool:
    """An active membership whose expiry is strictly before now."""
    if record.status != MembershipStatus.ACTIVE.value:
        return False
    if record.expiresAt is None:
        return False
    return as_utc(record.expiresAt) < as_utc(now)


class MembershipSweeper:
    """Marks expired active memberships as inactive in one batch write."""

    def __init__(self, firebase_client: FirebaseClient, use_lease: Optional[bool] = None):
        self.firebase = firebase_client
        self.use_lease = settings.sweep_lease_enabled if use_lease is None else use_lease

    def sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Run one full pass over the members collection.

        Errors are logged and recorded on the result; nothing is raised, and
        the next scheduled run re-evaluates every record from scratch.

        Args:
            now: Sweep time, defaults to the current UTC time

        Returns:
            SweepResult with counts and the transitioned document IDs
        """
        now = as_utc(now) if now is not None else utc_now()
        result = SweepResult(swept_at=now)

        lease = None
        if self.use_lease:
            lease = SweepLease(self.firebase.firestore_db)
            try:
                if not lease.acquire(now):
                    logger.info("Another sweep holds the lease, skipping")
                    result.skipped_lease_held = True
                    return result
            except Exception as e:
                logger.error(f"Error acquiring sweep lease: {str(e)}")
                result.error = str(e)
                return result

        try:
            self._expire_memberships(now, result)
        finally:
            if lease is not None:
                lease.release()

        return result

    def _expire_memberships(self, now: datetime, result: SweepResult) -> None:
        db = self.firebase.firestore_db

        try:
            snapshots = db.collection(settings.members_collection).get()
        except Exception as e:
            logger.error(f"Error fetching memberships: {str(e)}")
            result.error = str(e)
            return

        batch = db.batch()
        for snapshot in snapshots:
            result.scanned += 1
            try:
                record = MembershipRecord.model_validate(snapshot.to_dict() or {})
            except ValidationError as e:
                logger.warning(f"Skipping membership {snapshot.id} with invalid fields: {str(e)}")
                continue

            if is_expired(record, now):
                batch.update(snapshot.reference, {
                    'status': MembershipStatus.INACTIVE.value,
                    'lastUpdated': now,
                })
                result.expired_ids.append(snapshot.id)

        result.expired = len(result.expired_ids)
        if result.expired == 0:
            logger.info(f"No expired memberships among {result.scanned} scanned")
            return

        try:
            batch.commit()
        except Exception as e:
            logger.error(f"Error updating expired memberships: {str(e)}")
            result.error = str(e)
            return

        result.committed = True
        logger.info(f"Updated {result.expired} memberships to inactive")
