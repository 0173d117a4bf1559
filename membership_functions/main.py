import argparse
import logging
import sys
from typing import Dict, List, Optional

import functions_framework
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from pydantic import ValidationError

from .config import settings
from .dispatcher import NotificationDispatcher
from .firebase_client import get_firebase_client, initialize_firebase
from .firestore_events import document_data, document_id
from .logging_config import setup_logging
from .models import DispatchResult, DispatchStatus, NotificationRecord, SweepResult
from .sweeper import MembershipSweeper

logger = logging.getLogger(__name__)


def send_membership_approved_notification(data: Dict, context=None) -> Optional[DispatchResult]:
    """
    Background function for documents created under notifications/{notificationId}.

    Args:
        data: Firestore event payload carrying the new document
        context: Event metadata supplied by the platform

    Returns:
        The dispatch outcome, or None when the document could not be read
    """
    notification_id = document_id(data)
    try:
        record = NotificationRecord.model_validate(document_data(data))
    except (ValidationError, ValueError) as e:
        logger.error(f"Invalid notification document {notification_id}: {str(e)}")
        return None

    logger.info(f"Processing notification {notification_id} for user {record.userId}")
    return NotificationDispatcher(get_firebase_client()).dispatch_notification(record)


def update_expired_memberships(event: Optional[Dict] = None, context=None) -> SweepResult:
    """Background function fired by the daily Cloud Scheduler job."""
    logger.info("Starting membership expiry sweep")
    return MembershipSweeper(get_firebase_client()).sweep()


@functions_framework.http
def update_expired_memberships_http(request):
    """HTTP variant of the sweep for Cloud Scheduler HTTP targets"""
    result = update_expired_memberships()
    return result.model_dump(mode="json"), 200


def run_scheduler() -> None:
    """Run the sweep on the configured cron schedule outside Cloud Functions."""
    scheduler = BlockingScheduler(timezone=settings.sweep_timezone)
    scheduler.add_job(
        update_expired_memberships,
        CronTrigger.from_crontab(settings.sweep_cron, timezone=settings.sweep_timezone),
        id="membership_expiry_sweep",
        max_instances=1,
        coalesce=True
    )
    logger.info(f"Scheduling membership sweep '{settings.sweep_cron}' in {settings.sweep_timezone}")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler shutdown gracefully")


def _parse_data(pairs: List[str]) -> Dict[str, str]:
    data = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{pair}'")
        data[key] = value
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="membership-functions")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sweep", help="Mark expired memberships as inactive once")

    send = commands.add_parser("send", help="Send a push notification to a user")
    send.add_argument("user_id")
    send.add_argument("title")
    send.add_argument("body")
    send.add_argument("--data", action="append", default=[], metavar="KEY=VALUE")

    commands.add_parser("schedule", help="Run the daily sweep schedule in the foreground")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    args = build_parser().parse_args(argv)

    setup_logging()
    logger.info(f"Starting {settings.service_name} in {settings.environment} environment")
    initialize_firebase()

    if args.command == "sweep":
        result = update_expired_memberships()
        print(result.model_dump_json())
        return 1 if result.error else 0

    if args.command == "send":
        try:
            data = _parse_data(args.data)
        except argparse.ArgumentTypeError as e:
            logger.error(str(e))
            return 2
        dispatcher = NotificationDispatcher(get_firebase_client())
        result = dispatcher.send_to_user(args.user_id, args.title, args.body, data)
        print(result.model_dump_json())
        return 1 if result.status == DispatchStatus.FAILED else 0

    run_scheduler()
    return 0


if __name__ == "__main__":
    sys.exit(main())
