from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter
from sqlmodel import SQLModel


class RosterMember(BaseModel):
    """One identity as reported by the chat platform's user directory."""

    id: str
    name: str | None = None
    real_name: str | None = None
    email: str | None = None
    is_bot: bool = False
    is_deleted: bool = False

    @classmethod
    def from_slack(cls, member: dict) -> "RosterMember":
        profile = member.get("profile") or {}
        return cls(
            id=member["id"],
            name=member.get("name"),
            real_name=member.get("real_name") or profile.get("real_name"),
            email=profile.get("email"),
            is_bot=bool(member.get("is_bot", False)),
            is_deleted=bool(member.get("deleted", False)),
        )


# --- Slack interaction payloads ---


class SlackUserRef(BaseModel):
    id: str


class SlackAction(BaseModel):
    action_id: str


class BlockActionsPayload(BaseModel):
    type: Literal["block_actions"]
    user: SlackUserRef
    trigger_id: str
    actions: list[SlackAction]


class ViewState(BaseModel):
    values: dict[str, dict[str, dict[str, Any]]] = {}


class SubmittedView(BaseModel):
    callback_id: str
    state: ViewState = ViewState()


class ViewSubmissionPayload(BaseModel):
    type: Literal["view_submission"]
    user: SlackUserRef
    view: SubmittedView


InteractionPayload = Annotated[
    Union[BlockActionsPayload, ViewSubmissionPayload],
    Field(discriminator="type"),
]

interaction_payload_adapter = TypeAdapter(InteractionPayload)


# --- API responses ---


class DispatchResponse(BaseModel):
    ok: bool
    sent: int
    failed: int


class ReconcileResponse(BaseModel):
    ok: bool
    added: int


class UserResponse(SQLModel):
    slack_id: str
    name: str | None = None
    email: str | None = None
    is_active: bool


class UserActivationUpdate(BaseModel):
    is_active: bool


class TimesheetResponse(SQLModel):
    id: int
    user_slack_id: str
    task_details: str
    submission_date: str
    created_at: datetime
