"""Simple script to send timesheet reminders once - can be run as a cron job."""
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlmodel import Session

from db import create_db_and_tables, engine
from reminders import dispatch_reminders
from slack_client import get_chat

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    create_db_and_tables()

    with Session(engine) as session:
        result = dispatch_reminders(session, get_chat())

    print(f"Reminders sent: {len(result.sent)}, failed: {len(result.failed)}")
    if result.failed:
        print(f"ERROR: could not reach {', '.join(result.failed)}")
        sys.exit(1)
    sys.exit(0)
