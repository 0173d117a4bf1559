from .dispatcher import NotificationDispatcher, build_message, send_notification_to_user
from .firebase_client import FirebaseClient, get_firebase_client, initialize_firebase
from .models import DispatchResult, DispatchStatus, SweepResult
from .sweeper import MembershipSweeper, is_expired

__all__ = [
    "DispatchResult",
    "DispatchStatus",
    "FirebaseClient",
    "MembershipSweeper",
    "NotificationDispatcher",
    "SweepResult",
    "build_message",
    "get_firebase_client",
    "initialize_firebase",
    "is_expired",
    "send_notification_to_user",
]
