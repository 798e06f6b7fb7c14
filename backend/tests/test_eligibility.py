from datetime import UTC, datetime

from conftest import at
from eligibility import EligibilityReason, can_submit, local_date, refusal_message
from messages import local_timestamp


def test_allowed_before_cutoff_without_record(test_session, add_user):
    add_user("U1")

    result = can_submit(test_session, "U1", at(19, 59))

    assert result.allowed is True
    assert result.reason is EligibilityReason.OK
    assert result.existing_record is None


def test_cutoff_at_exactly_twenty(test_session, add_user):
    add_user("U1")

    result = can_submit(test_session, "U1", at(20, 0))

    assert result.allowed is False
    assert result.reason is EligibilityReason.PAST_CUTOFF


def test_already_submitted_returns_existing_record(test_session, add_user, add_record):
    add_user("U1")
    record = add_record("U1")

    result = can_submit(test_session, "U1", at(9, 0))

    assert result.reason is EligibilityReason.ALREADY_SUBMITTED
    assert result.existing_record.id == record.id


def test_cutoff_checked_before_existing_record(test_session, add_user, add_record):
    add_user("U1")
    add_record("U1")

    result = can_submit(test_session, "U1", at(21, 30))

    assert result.reason is EligibilityReason.PAST_CUTOFF
    assert result.existing_record is None


def test_record_from_another_day_does_not_count(test_session, add_user, add_record):
    add_user("U1")
    add_record("U1", day="2024-01-14")

    assert can_submit(test_session, "U1", at(10, 0)).allowed is True


def test_record_of_inactive_user_is_not_reported(test_session, add_user, add_record):
    add_user("U1", is_active=False)
    add_record("U1")

    assert can_submit(test_session, "U1", at(10, 0)).reason is EligibilityReason.OK


def test_cutoff_uses_organisation_time_zone(test_session, add_user):
    add_user("U1")
    # 15:00 UTC is 20:30 in Asia/Kolkata
    now = datetime(2024, 1, 15, 15, 0, tzinfo=UTC)

    assert can_submit(test_session, "U1", now).reason is EligibilityReason.PAST_CUTOFF


def test_local_date_rolls_over_in_organisation_time_zone():
    # 20:00 UTC on the 14th is already the 15th in Asia/Kolkata
    assert local_date(datetime(2024, 1, 14, 20, 0, tzinfo=UTC)) == "2024-01-15"


def test_refusal_messages(test_session, add_user, add_record):
    add_user("U1")
    record = add_record("U1")

    assert "8PM" in refusal_message(can_submit(test_session, "U1", at(20, 0)))
    already = refusal_message(can_submit(test_session, "U1", at(10, 0)))
    assert f"id: {record.id}" in already
    assert local_timestamp(record.created_at) in already
    assert refusal_message(can_submit(test_session, "U2", at(10, 0))) is None
