"""Merge the chat platform's member list into the local users table."""
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlmodel import Session, select

from models import User
from schemas import RosterMember

logger = logging.getLogger(__name__)

# Slack's built-in system user; it is not flagged as a bot in users.list
SYSTEM_IDENTITY = "USLACKBOT"


@dataclass
class ReconcileResult:
    added: int


def is_human_member(member: RosterMember) -> bool:
    return not member.is_bot and not member.is_deleted and member.id != SYSTEM_IDENTITY


def reconcile_users(session: Session, roster: Iterable[RosterMember]) -> ReconcileResult:
    """Insert identities we have not seen before, inactive until an admin enables them.

    Existing users are never updated or removed.
    """
    known = set(session.exec(select(User.slack_id)).all())

    new_users = []
    for member in roster:
        if not is_human_member(member) or member.id in known:
            continue
        known.add(member.id)
        new_users.append(
            User(
                slack_id=member.id,
                name=member.real_name,
                email=member.email or member.name,
                is_active=False,
            )
        )

    if new_users:
        session.add_all(new_users)
        session.commit()

    logger.info(f"Roster sync added {len(new_users)} users")
    return ReconcileResult(added=len(new_users))
