"""
Two-step timesheet submission: a reminder button opens a modal, the modal
submission stores the record.

Both steps re-check eligibility because time moves on (the cutoff may pass)
and another submission may land between opening and submitting the modal.
"""
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from eligibility import Eligibility, EligibilityReason, can_submit, local_date, refusal_message
from messages import (
    DETAILS_ACTION_ID,
    DETAILS_BLOCK_ID,
    FORM_CALLBACK_ID,
    OPEN_FORM_ACTION_ID,
    submitted_text,
    timesheet_modal,
)
from models import TimesheetRecord
from schemas import (
    BlockActionsPayload,
    ViewSubmissionPayload,
    interaction_payload_adapter,
)

logger = logging.getLogger(__name__)


class InvalidInteraction(ValueError):
    """The interaction payload is not one this bot understands."""


class InteractionState(str, Enum):
    TRIGGERED = "triggered"
    FORM_OPEN = "form_open"
    SUBMITTED = "submitted"
    REFUSED = "refused"


@dataclass
class InteractionOutcome:
    state: InteractionState
    eligibility: Eligibility
    record: TimesheetRecord | None = None
    # Direct message to deliver once the request has been acknowledged
    notice: str | None = None


def parse_interaction(raw: str | None) -> BlockActionsPayload | ViewSubmissionPayload:
    """Validate the ``payload`` form field Slack posts to the interactions endpoint."""
    if not raw:
        raise InvalidInteraction("missing payload")
    try:
        payload = interaction_payload_adapter.validate_python(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise InvalidInteraction(f"unrecognised payload: {e}") from e

    if isinstance(payload, BlockActionsPayload):
        if not payload.actions or payload.actions[0].action_id != OPEN_FORM_ACTION_ID:
            raise InvalidInteraction("unknown block action")
    elif payload.view.callback_id != FORM_CALLBACK_ID:
        raise InvalidInteraction(f"unknown view callback: {payload.view.callback_id}")
    return payload


def extract_task_details(payload: ViewSubmissionPayload) -> str:
    try:
        return payload.view.state.values[DETAILS_BLOCK_ID][DETAILS_ACTION_ID]["value"]
    except KeyError as e:
        raise InvalidInteraction(f"submission is missing field {e}") from e


def notify_user(chat, user_id: str, text: str):
    """Send a direct message after the interaction has been acknowledged."""
    try:
        chat.send_message(user_id, text)
    except Exception as e:
        logger.error(f"Error sending message to user {user_id}: {str(e)}")


def handle_trigger(session: Session, chat, payload: BlockActionsPayload, now: datetime) -> InteractionOutcome:
    """The reminder button was pressed: open the modal, or explain why not."""
    user_id = payload.user.id
    eligibility = can_submit(session, user_id, now)

    if not eligibility.allowed:
        logger.info(f"Refusing to open timesheet modal for {user_id}: {eligibility.reason.value}")
        return InteractionOutcome(InteractionState.REFUSED, eligibility, notice=refusal_message(eligibility))

    chat.open_form(payload.trigger_id, timesheet_modal())
    logger.info(f"Opened timesheet modal for {user_id}")
    return InteractionOutcome(InteractionState.FORM_OPEN, eligibility)


def handle_form_submission(session: Session, payload: ViewSubmissionPayload, now: datetime) -> InteractionOutcome:
    """The modal was submitted: store the record if the user is still eligible.

    A refusal here only dismisses the modal; no message is sent.
    """
    user_id = payload.user.id
    eligibility = can_submit(session, user_id, now)

    if not eligibility.allowed:
        logger.info(f"Dropping timesheet submission from {user_id}: {eligibility.reason.value}")
        return InteractionOutcome(InteractionState.REFUSED, eligibility)

    task_details = extract_task_details(payload)
    logger.info(f"Timesheet input from user {user_id}: {task_details!r}")

    record = TimesheetRecord(
        user_slack_id=user_id,
        task_details=task_details,
        created_at=now.astimezone(UTC),
        submission_date=local_date(now),
    )
    session.add(record)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent submission for the same day won the race
        session.rollback()
        logger.warning(f"Duplicate timesheet for {user_id} on {local_date(now)} rejected by the database")
        return InteractionOutcome(
            InteractionState.REFUSED,
            Eligibility(EligibilityReason.ALREADY_SUBMITTED),
        )

    # Re-read so the acknowledgement shows what was actually persisted
    session.refresh(record)
    logger.info(f"Row inserted: id={record.id} user={user_id} created_at={record.created_at}")
    return InteractionOutcome(
        InteractionState.SUBMITTED,
        eligibility,
        record=record,
        notice=submitted_text(record),
    )
