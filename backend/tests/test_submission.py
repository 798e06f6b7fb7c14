import json

import pytest
from sqlmodel import select

from conftest import at
from eligibility import EligibilityReason
from messages import FORM_CALLBACK_ID, local_timestamp
from models import TimesheetRecord
from schemas import BlockActionsPayload, ViewSubmissionPayload
from submission import (
    InteractionState,
    InvalidInteraction,
    handle_form_submission,
    handle_trigger,
    parse_interaction,
)


def trigger(user_id="U1"):
    return {
        "type": "block_actions",
        "user": {"id": user_id},
        "trigger_id": "trigger-123",
        "actions": [{"action_id": "open_timesheet_modal"}],
    }


def submission(user_id="U1", text="worked on X"):
    return {
        "type": "view_submission",
        "user": {"id": user_id},
        "view": {
            "callback_id": "submit_timesheet",
            "state": {"values": {"timesheet_details": {"input_timesheet": {"type": "plain_text_input", "value": text}}}},
        },
    }


def test_parse_recognises_both_interaction_types():
    assert isinstance(parse_interaction(json.dumps(trigger())), BlockActionsPayload)
    assert isinstance(parse_interaction(json.dumps(submission())), ViewSubmissionPayload)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "not json",
        json.dumps({"type": "shortcut", "user": {"id": "U1"}}),
        json.dumps({**trigger(), "actions": [{"action_id": "something_else"}]}),
        json.dumps({**trigger(), "actions": []}),
        json.dumps({**submission(), "view": {"callback_id": "other_modal"}}),
    ],
)
def test_parse_rejects_unknown_payloads(raw):
    with pytest.raises(InvalidInteraction):
        parse_interaction(raw)


def test_trigger_opens_form_when_allowed(test_session, fake_chat, add_user):
    add_user("U1")

    outcome = handle_trigger(test_session, fake_chat, parse_interaction(json.dumps(trigger())), at(10, 0))

    assert outcome.state is InteractionState.FORM_OPEN
    assert outcome.notice is None
    assert len(fake_chat.forms) == 1
    form = fake_chat.forms[0]
    assert form["trigger_id"] == "trigger-123"
    assert form["view"]["callback_id"] == FORM_CALLBACK_ID
    inputs = [b for b in form["view"]["blocks"] if b["type"] == "input"]
    assert len(inputs) == 1
    assert inputs[0]["element"]["multiline"] is True


def test_trigger_after_cutoff_is_refused(test_session, fake_chat, add_user):
    add_user("U1")

    outcome = handle_trigger(test_session, fake_chat, parse_interaction(json.dumps(trigger())), at(20, 0))

    assert outcome.state is InteractionState.REFUSED
    assert outcome.eligibility.reason is EligibilityReason.PAST_CUTOFF
    assert "8PM" in outcome.notice
    assert fake_chat.forms == []


def test_trigger_after_submission_restates_record(test_session, fake_chat, add_user, add_record):
    add_user("U1")
    record = add_record("U1")

    outcome = handle_trigger(test_session, fake_chat, parse_interaction(json.dumps(trigger())), at(11, 0))

    assert outcome.state is InteractionState.REFUSED
    assert outcome.eligibility.reason is EligibilityReason.ALREADY_SUBMITTED
    assert f"[id: {record.id}, time: {local_timestamp(record.created_at)}]" in outcome.notice
    assert fake_chat.forms == []


def test_submission_inserts_one_record(test_session, add_user):
    add_user("U1")

    outcome = handle_form_submission(test_session, parse_interaction(json.dumps(submission())), at(10, 0))

    assert outcome.state is InteractionState.SUBMITTED
    records = test_session.exec(select(TimesheetRecord)).all()
    assert len(records) == 1
    assert records[0].user_slack_id == "U1"
    assert records[0].task_details == "worked on X"
    assert records[0].submission_date == "2024-01-15"
    assert outcome.notice == f"Thank you for submitting your timesheet! [id: {records[0].id}, time: 2024-01-15 10:00:00 IST]"


def test_submission_after_cutoff_only_dismisses_form(test_session, add_user):
    add_user("U1")

    outcome = handle_form_submission(test_session, parse_interaction(json.dumps(submission())), at(20, 5))

    assert outcome.state is InteractionState.REFUSED
    assert outcome.notice is None
    assert test_session.exec(select(TimesheetRecord)).all() == []


def test_second_submission_same_day_is_refused(test_session, add_user):
    add_user("U1")
    payload = parse_interaction(json.dumps(submission()))

    first = handle_form_submission(test_session, payload, at(10, 0))
    second = handle_form_submission(test_session, payload, at(10, 5))

    assert first.state is InteractionState.SUBMITTED
    assert second.state is InteractionState.REFUSED
    assert second.eligibility.reason is EligibilityReason.ALREADY_SUBMITTED
    assert len(test_session.exec(select(TimesheetRecord)).all()) == 1


def test_database_uniqueness_maps_to_already_submitted(test_session, add_user, add_record):
    # Inactive users slip past the existence check, so only the unique index stops them
    add_user("U1", is_active=False)
    add_record("U1")

    outcome = handle_form_submission(test_session, parse_interaction(json.dumps(submission())), at(10, 0))

    assert outcome.state is InteractionState.REFUSED
    assert outcome.eligibility.reason is EligibilityReason.ALREADY_SUBMITTED
    assert len(test_session.exec(select(TimesheetRecord)).all()) == 1


def test_submission_without_details_field_is_invalid(test_session, add_user):
    add_user("U1")
    payload = submission()
    payload["view"]["state"] = {"values": {}}

    with pytest.raises(InvalidInteraction):
        handle_form_submission(test_session, parse_interaction(json.dumps(payload)), at(10, 0))
