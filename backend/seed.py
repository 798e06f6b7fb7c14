from sqlmodel import Session, select

from db import engine
from models import User


def seed_database():
    """Seed the database with sample users."""
    with Session(engine) as session:
        # Check if data already exists
        existing = session.exec(select(User)).first()
        if existing:
            print("Database already has data, skipping seed.")
            return

        sample_users = [
            User(slack_id="U0000ALICE", name="Alice Johnson", email="alice@example.com", is_active=True),
            User(slack_id="U00000BOB", name="Bob Smith", email="bob@example.com", is_active=True),
            # Synced but not yet enabled by an admin
            User(slack_id="U000CAROL", name="Carol Davis", email="carol@example.com", is_active=False),
        ]

        session.add_all(sample_users)
        session.commit()
        print(f"Seeded database with {len(sample_users)} sample users.")


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database()
