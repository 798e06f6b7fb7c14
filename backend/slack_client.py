"""Thin wrapper around the Slack Web API used by the bot."""
import logging

from slack_sdk import WebClient

from config import settings
from schemas import RosterMember

logger = logging.getLogger(__name__)


class SlackChat:
    """Chat capabilities the bot needs: DM a user, open a modal, list the workspace."""

    def __init__(self, client: WebClient):
        self.client = client

    def send_message(self, channel: str, text: str, blocks: list[dict] | None = None):
        return self.client.chat_postMessage(channel=channel, text=text, blocks=blocks)

    def open_form(self, trigger_id: str, view: dict):
        return self.client.views_open(trigger_id=trigger_id, view=view)

    def list_identities(self) -> list[RosterMember]:
        """Return every member of the workspace, following pagination cursors."""
        members = []
        for page in self.client.users_list(limit=200):
            members.extend(RosterMember.from_slack(m) for m in page["members"])
        logger.info(f"Retrieved {len(members)} members from Slack")
        return members


# Created once per process and shared by reference
chat = SlackChat(WebClient(token=settings.SLACK_BOT_TOKEN or None))


def get_chat() -> SlackChat:
    return chat
