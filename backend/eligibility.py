"""Decide whether a user may submit a timesheet right now."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlmodel import Session, select

from config import settings
from messages import PAST_CUTOFF_TEXT, already_submitted_text
from models import TimesheetRecord, User

SUBMISSION_CUTOFF_HOUR = 20


class EligibilityReason(str, Enum):
    OK = "ok"
    PAST_CUTOFF = "past_cutoff"
    ALREADY_SUBMITTED = "already_submitted"


@dataclass
class Eligibility:
    reason: EligibilityReason
    existing_record: TimesheetRecord | None = None

    @property
    def allowed(self) -> bool:
        return self.reason is EligibilityReason.OK


def now_local() -> datetime:
    """Current time in the organisation time zone."""
    return datetime.now(settings.org_tz)


def to_local(now: datetime) -> datetime:
    return now.astimezone(settings.org_tz)


def local_date(now: datetime) -> str:
    """Organisation-local calendar day of ``now`` as YYYY-MM-DD."""
    return to_local(now).strftime("%Y-%m-%d")


def can_submit(session: Session, user_slack_id: str, now: datetime) -> Eligibility:
    """
    Evaluate submission eligibility for one user.

    The cutoff check runs first and needs no lookup: past 20:00 the answer is
    PAST_CUTOFF whether or not a record exists. Otherwise an active user's
    record for today means ALREADY_SUBMITTED.
    """
    if to_local(now).hour >= SUBMISSION_CUTOFF_HOUR:
        return Eligibility(EligibilityReason.PAST_CUTOFF)

    stmt = (
        select(TimesheetRecord)
        .join(User, User.slack_id == TimesheetRecord.user_slack_id)
        .where(User.is_active == True)  # noqa: E712
        .where(TimesheetRecord.user_slack_id == user_slack_id)
        .where(TimesheetRecord.submission_date == local_date(now))
        .order_by(TimesheetRecord.id)
    )
    record = session.exec(stmt).first()
    if record:
        return Eligibility(EligibilityReason.ALREADY_SUBMITTED, existing_record=record)

    return Eligibility(EligibilityReason.OK)


def refusal_message(eligibility: Eligibility) -> str | None:
    """User-facing text explaining a refusal, or None when submission is allowed."""
    if eligibility.reason is EligibilityReason.PAST_CUTOFF:
        return PAST_CUTOFF_TEXT
    if eligibility.reason is EligibilityReason.ALREADY_SUBMITTED:
        return already_submitted_text(eligibility.existing_record)
    return None
