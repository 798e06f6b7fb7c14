import os
import tempfile
from datetime import datetime
from zoneinfo import ZoneInfo

# Point the engine at a throwaway database before db.py is imported
_test_dir = tempfile.mkdtemp(prefix="timesheet-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_dir, 'test_timesheets.db')}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ORG_TIMEZONE"] = "Asia/Kolkata"
os.environ["REMINDER_TIMES"] = "18:30,18:45,19:00"

import pytest  # noqa: E402
from slack_sdk.errors import SlackApiError  # noqa: E402
from sqlmodel import Session, delete  # noqa: E402

from db import create_db_and_tables, engine  # noqa: E402
from models import TimesheetRecord, User  # noqa: E402

ORG_TZ = ZoneInfo("Asia/Kolkata")


def at(hour: int, minute: int = 0, day: int = 15) -> datetime:
    """Organisation-local time on a Monday in January 2024."""
    return datetime(2024, 1, day, hour, minute, tzinfo=ORG_TZ)


class FakeChat:
    """Records what the bot would have sent to Slack."""

    def __init__(self):
        self.messages = []
        self.forms = []
        self.roster = []
        self.fail_for = set()

    def send_message(self, channel, text, blocks=None):
        if channel in self.fail_for:
            raise SlackApiError("channel_not_found", {"ok": False, "error": "channel_not_found"})
        self.messages.append({"channel": channel, "text": text, "blocks": blocks})

    def open_form(self, trigger_id, view):
        self.forms.append({"trigger_id": trigger_id, "view": view})

    def list_identities(self):
        return list(self.roster)

    def messages_to(self, channel):
        return [m for m in self.messages if m["channel"] == channel]


@pytest.fixture(scope="function")
def test_session():
    """Create a test database session."""
    create_db_and_tables()
    with Session(engine) as session:
        yield session
        # Clean up all test data after test
        session.rollback()
        session.exec(delete(TimesheetRecord))
        session.exec(delete(User))
        session.commit()


@pytest.fixture(scope="function")
def fake_chat():
    return FakeChat()


@pytest.fixture
def add_user(test_session):
    def _add_user(slack_id: str, is_active: bool = True, name: str | None = None) -> User:
        user = User(slack_id=slack_id, name=name or slack_id, email=f"{slack_id.lower()}@example.com", is_active=is_active)
        test_session.add(user)
        test_session.commit()
        return user

    return _add_user


@pytest.fixture
def add_record(test_session):
    def _add_record(slack_id: str, day: str = "2024-01-15", details: str = "earlier work") -> TimesheetRecord:
        record = TimesheetRecord(user_slack_id=slack_id, task_details=details, submission_date=day)
        test_session.add(record)
        test_session.commit()
        test_session.refresh(record)
        return record

    return _add_record
