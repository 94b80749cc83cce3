"""Pre-match reminder notifications.

Thin helpers over a NotificationScheduler: permission/channel setup and the
reminder payload. Scheduling decisions (match status, lead time) live here;
the OS specifics live behind the scheduler.
"""

import logging
from datetime import datetime, timedelta

from matchlog.config import get_notify_lead_minutes
from matchlog.core import Event, NotificationScheduler, PreconditionFailed
from matchlog.utilities.constants import NOTIFICATION_CHANNEL_ID, NOTIFICATION_CHANNEL_NAME
from matchlog.utilities.tz import match_start

logger = logging.getLogger(__name__)

PERMISSION_GRANTED = "granted"

NOTIFICATION_TITLE = "⚽ Match Starting Soon!"


def ensure_notification_permission(scheduler: NotificationScheduler) -> bool:
    """Make sure reminders can be delivered.

    Android needs its channel before permission checks mean anything.
    Permission is only requested when not already granted.
    """
    if scheduler.platform == "android":
        scheduler.ensure_channel(NOTIFICATION_CHANNEL_ID, NOTIFICATION_CHANNEL_NAME)

    if scheduler.permission_status() == PERMISSION_GRANTED:
        return True

    granted = scheduler.request_permission()
    if not granted:
        logger.info("[NOTIFY] Notification permission declined")
    return granted


def build_notification_payload(event: Event) -> dict:
    return {
        "title": NOTIFICATION_TITLE,
        "body": f"{event.home_team} vs {event.away_team} - Are you watching?",
        "sound": True,
        "data": {"eventId": event.event_id},
    }


def reminder_time(event: Event, lead_minutes: int | None = None) -> datetime:
    """Kickoff minus the lead time, as an aware UTC instant."""
    start = match_start(event.date, event.time)
    if start is None:
        raise PreconditionFailed("Kickoff time not yet announced")
    lead = get_notify_lead_minutes() if lead_minutes is None else lead_minutes
    return start - timedelta(minutes=lead)


def schedule_match_notification(
    scheduler: NotificationScheduler,
    event: Event,
    lead_minutes: int | None = None,
) -> str:
    """Schedule the reminder and return the scheduler's notification id."""
    when = reminder_time(event, lead_minutes)
    notification_id = scheduler.schedule_at(when, build_notification_payload(event))
    logger.info(
        "[NOTIFY] Scheduled %s for %s vs %s at %s",
        notification_id,
        event.home_team,
        event.away_team,
        when.isoformat(),
    )
    return notification_id


def cancel_match_notification(scheduler: NotificationScheduler, notification_id: str) -> None:
    scheduler.cancel(notification_id)
    logger.info("[NOTIFY] Cancelled %s", notification_id)
