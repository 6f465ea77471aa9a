"""
Activity feed and owner announcements, both kept in activity_log.
"""
import logging
from typing import List, Optional

from feedportal.errors import ValidationError
from feedportal.store import table
from feedportal.utils import now

logger = logging.getLogger(__name__)

ACTIVITY_TABLE = 'activity_log'
ANNOUNCEMENT = 'announcement'
MAX_ANNOUNCEMENT_LENGTH = 1000


def log_activity(activity_type: str, description: str, actor_id: Optional[str] = None) -> dict:
    return table(ACTIVITY_TABLE).insert({
        'activity_type': activity_type,
        'description': description,
        'actor_id': actor_id,
        'created_at': now(),
    })[0]


def recent_activity(limit: int = 5) -> List[dict]:
    return (
        table(ACTIVITY_TABLE).select('*')
        .order('created_at', ascending=False)
        .limit(limit)
        .execute().data
    )


def post_announcement(message: str, author_id: str) -> dict:
    message = (message or '').strip()
    if not message:
        raise ValidationError("Announcement text is required", field='message')
    if len(message) > MAX_ANNOUNCEMENT_LENGTH:
        raise ValidationError(
            f"Announcement is limited to {MAX_ANNOUNCEMENT_LENGTH} characters", field='message'
        )
    entry = log_activity(ANNOUNCEMENT, message, actor_id=author_id)
    logger.info(f"Announcement {entry['id']} posted by {author_id}")
    return entry


def list_announcements(limit: int = 20) -> List[dict]:
    return (
        table(ACTIVITY_TABLE).select('*')
        .eq('activity_type', ANNOUNCEMENT)
        .order('created_at', ascending=False)
        .limit(limit)
        .execute().data
    )
