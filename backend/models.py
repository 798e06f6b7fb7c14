from datetime import UTC, datetime

from sqlmodel import Field, SQLModel, UniqueConstraint


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    slack_id: str = Field(index=True, unique=True)  # Platform identity, never changes
    name: str | None = Field(default=None)
    email: str | None = Field(default=None)
    # Flipped by an administrator only; new users wait here until activated
    is_active: bool = Field(default=False, index=True)


class TimesheetRecord(SQLModel, table=True):
    __tablename__ = "timesheets"
    __table_args__ = (UniqueConstraint("user_slack_id", "submission_date", name="uniq_timesheets_user_day"),)

    id: int | None = Field(default=None, primary_key=True)
    user_slack_id: str = Field(index=True)
    task_details: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    submission_date: str = Field(index=True)  # YYYY-MM-DD in the organisation time zone
