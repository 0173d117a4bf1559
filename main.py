"""Cloud Functions source entry point."""
from membership_functions.firebase_client import initialize_firebase
from membership_functions.logging_config import setup_logging
from membership_functions.main import (
    send_membership_approved_notification,
    update_expired_memberships,
    update_expired_memberships_http,
)

setup_logging()
initialize_firebase()

__all__ = [
    "send_membership_approved_notification",
    "update_expired_memberships",
    "update_expired_memberships_http",
]
