import logging
from typing import Any, Dict, Optional

from firebase_admin import messaging

from .config import settings
from .firebase_client import FirebaseClient, get_firebase_client
from .models import DispatchResult, DispatchStatus, NotificationRecord

logger = logging.getLogger(__name__)


def _string_data(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # FCM only accepts string keys and values in the data payload
    return {str(key): str(value) for key, value in (data or {}).items() if value is not None}


def build_message(token: str,
                  title: Optional[str],
                  body: Optional[str],
                  data: Optional[Dict[str, Any]] = None) -> messaging.Message:
    """
    Build a push message for a single device.

    Args:
        token: The device's FCM token
        title: Notification title, passed through verbatim
        body: Notification body, passed through verbatim
        data: Additional key-value data payload

    Returns:
        The FCM message with Android and APNs delivery hints attached
    """
    return messaging.Message(
        token=token,
        notification=messaging.Notification(
            title=title,
            body=body
        ),
        data=_string_data(data),
        android=messaging.AndroidConfig(
            priority=settings.android_priority,
            notification=messaging.AndroidNotification(
                channel_id=settings.android_channel_id
            )
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    badge=settings.apns_badge,
                    sound=settings.apns_sound
                )
            )
        )
    )


class NotificationDispatcher:
    """Looks up a user's push token and sends them a single notification."""

    def __init__(self, firebase_client: FirebaseClient):
        self.firebase = firebase_client

    def send_to_user(self,
                     user_id: str,
                     title: Optional[str],
                     body: Optional[str],
                     data: Optional[Dict[str, Any]] = None) -> DispatchResult:
        """
        Send one push notification to a user, if they have a token.

        Failures are logged and reported in the result, never raised.

        Args:
            user_id: The recipient's user ID
            title: Notification title
            body: Notification body
            data: Additional notification data

        Returns:
            DispatchResult describing whether the message was sent
        """
        try:
            token = self.firebase.get_user_token(user_id)
        except Exception as e:
            logger.error(f"Error fetching push token for user {user_id}: {str(e)}")
            return DispatchResult(status=DispatchStatus.FAILED, user_id=user_id, error=str(e))

        if not token:
            logger.info(f"No push token for user {user_id}, notification skipped")
            return DispatchResult(status=DispatchStatus.SKIPPED_NO_TOKEN, user_id=user_id)

        message = build_message(token, title, body, data)

        try:
            message_id = self.firebase.send_message(message)
        except Exception as e:
            logger.error(f"Error sending notification to user {user_id}: {str(e)}")
            return DispatchResult(status=DispatchStatus.FAILED, user_id=user_id, error=str(e))

        logger.info(f"Notification sent to user {user_id}: {message_id}")
        return DispatchResult(status=DispatchStatus.SENT, user_id=user_id, message_id=message_id)

    def dispatch_notification(self, record: NotificationRecord) -> DispatchResult:
        """Send the push message for a newly created notification document."""
        data = {
            'type': record.type or settings.default_notification_type,
            'click_action': settings.click_action,
        }
        return self.send_to_user(record.userId, record.title, record.body, data)


def send_notification_to_user(user_id: str,
                              title: Optional[str],
                              body: Optional[str],
                              data: Optional[Dict[str, Any]] = None,
                              firebase_client: Optional[FirebaseClient] = None) -> DispatchResult:
    """Send a push notification to a user from anywhere in the codebase."""
    dispatcher = NotificationDispatcher(firebase_client or get_firebase_client())
    return dispatcher.send_to_user(user_id, title, body, data)
