"""Message texts and Block Kit payloads sent to users."""
from datetime import UTC

from config import settings

OPEN_FORM_ACTION_ID = "open_timesheet_modal"
FORM_CALLBACK_ID = "submit_timesheet"
DETAILS_BLOCK_ID = "timesheet_details"
DETAILS_ACTION_ID = "input_timesheet"

REMINDER_TEXT = "Please fill out your timesheet!"
PAST_CUTOFF_TEXT = "The timesheet window has closed. Timesheets can be filled until 8PM."


def local_timestamp(created_at) -> str:
    """Render a stored UTC timestamp in the organisation time zone."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.astimezone(settings.org_tz).strftime("%Y-%m-%d %H:%M:%S %Z")


def record_reference(record) -> str:
    return f"[id: {record.id}, time: {local_timestamp(record.created_at)}]"


def already_submitted_text(record) -> str:
    return f"You already filled the timesheet, thank you! {record_reference(record)}"


def submitted_text(record) -> str:
    return f"Thank you for submitting your timesheet! {record_reference(record)}"


def reminder_blocks() -> list[dict]:
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": "Hi, please fill out your daily task details by clicking the button below:",
            },
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Fill Timesheet", "emoji": True},
                    "action_id": OPEN_FORM_ACTION_ID,
                }
            ],
        },
    ]


def timesheet_modal() -> dict:
    return {
        "type": "modal",
        "callback_id": FORM_CALLBACK_ID,
        "title": {"type": "plain_text", "text": "Timesheet"},
        "blocks": [
            {
                "type": "input",
                "block_id": DETAILS_BLOCK_ID,
                "element": {
                    "type": "plain_text_input",
                    "multiline": True,
                    "action_id": DETAILS_ACTION_ID,
                },
                "label": {"type": "plain_text", "text": "Enter your daily task details:"},
            }
        ],
        "submit": {"type": "plain_text", "text": "Submit"},
    }
