"""Daily reminder dispatch."""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlmodel import Session, col, select

from eligibility import local_date, now_local
from messages import REMINDER_TEXT, reminder_blocks
from models import TimesheetRecord, User

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def users_to_remind(session: Session, today: str) -> list[User]:
    """Active users with no timesheet record for ``today``."""
    submitted_today = select(TimesheetRecord.user_slack_id).where(TimesheetRecord.submission_date == today)
    stmt = (
        select(User)
        .where(User.is_active == True)  # noqa: E712
        .where(col(User.slack_id).not_in(submitted_today))
        .order_by(User.id)
    )
    return list(session.exec(stmt).all())


def dispatch_reminders(session: Session, chat, now: datetime | None = None) -> DispatchResult:
    """
    Send the "fill your timesheet" prompt to everyone who still owes one today.

    Each recipient gets exactly one send attempt. A failed send is logged and
    the batch moves on to the next user. Running this twice before a user
    submits prompts that user twice.
    """
    today = local_date(now or now_local())
    result = DispatchResult()

    for user in users_to_remind(session, today):
        try:
            chat.send_message(user.slack_id, REMINDER_TEXT, blocks=reminder_blocks())
            result.sent.append(user.slack_id)
            logger.info(f"Reminder sent to user {user.slack_id}")
        except Exception as e:
            result.failed.append(user.slack_id)
            logger.error(f"Error sending reminder to user {user.slack_id}: {str(e)}")

    logger.info(f"Reminders for {today}: {len(result.sent)} sent, {len(result.failed)} failed")
    return result
