import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import BackgroundTasks, Depends, FastAPI, Form, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session, select

from config import settings
from db import create_db_and_tables, engine, get_session
from eligibility import now_local
from models import TimesheetRecord, User
from reminders import dispatch_reminders
from roster import reconcile_users
from schemas import (
    BlockActionsPayload,
    DispatchResponse,
    ReconcileResponse,
    TimesheetResponse,
    UserActivationUpdate,
    UserResponse,
)
from slack_client import SlackChat, get_chat
from submission import (
    InvalidInteraction,
    handle_form_submission,
    handle_trigger,
    notify_user,
    parse_interaction,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def get_now() -> datetime:
    """Current organisation-local time; overridden in tests."""
    return now_local()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and reminder schedule on startup."""
    create_db_and_tables()

    # Upgrade timesheets tables created before submission_date existed
    try:
        from migrations.migrate_001_add_submission_day import migrate as migrate_001
        migrate_001(engine)
    except Exception as e:
        logger.warning(f"Migration 001 check failed: {str(e)}")

    logger.info("Database initialized")

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        from scheduler import setup_scheduler
        scheduler = setup_scheduler()

    yield

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


# Create FastAPI app
app = FastAPI(title="Timesheet Reminder Bot API", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/send-reminders", response_model=DispatchResponse)
def send_reminders(
    session: Session = Depends(get_session),
    chat: SlackChat = Depends(get_chat),
    now: datetime = Depends(get_now),
):
    """Send the timesheet prompt now to every active user who has not submitted today.

    The scheduler calls the same dispatch; this endpoint is for external cron or manual runs.
    """
    logger.info("Reminder dispatch requested")
    try:
        result = dispatch_reminders(session, chat, now)
    except Exception as e:
        logger.error(f"Error sending reminders: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to send reminders") from e

    return DispatchResponse(ok=True, sent=len(result.sent), failed=len(result.failed))


@app.get("/sync-users", response_model=ReconcileResponse)
def sync_users(
    session: Session = Depends(get_session),
    chat: SlackChat = Depends(get_chat),
):
    """Add workspace members we have not seen before (inactive until enabled)."""
    logger.info("User sync requested")
    try:
        roster = chat.list_identities()
        result = reconcile_users(session, roster)
    except Exception as e:
        session.rollback()
        logger.error(f"Error syncing users: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to sync users: {str(e)}") from e

    return ReconcileResponse(ok=True, added=result.added)


@app.post("/slack/interactions")
def slack_interactions(
    background_tasks: BackgroundTasks,
    payload: str | None = Form(None),
    session: Session = Depends(get_session),
    chat: SlackChat = Depends(get_chat),
    now: datetime = Depends(get_now),
):
    """Handle Slack interactivity: the reminder button and the modal submission."""
    try:
        interaction = parse_interaction(payload)
    except InvalidInteraction as e:
        logger.warning(f"Unable to understand the action: {str(e)}")
        raise HTTPException(status_code=400, detail="unable to understand the action") from e

    logger.info(f"Interaction {interaction.type} from user {interaction.user.id}")

    if isinstance(interaction, BlockActionsPayload):
        try:
            outcome = handle_trigger(session, chat, interaction, now)
        except Exception as e:
            logger.error(f"Error opening modal: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to open modal") from e

        if outcome.notice:
            background_tasks.add_task(notify_user, chat, interaction.user.id, outcome.notice)
        return Response(status_code=200)

    try:
        outcome = handle_form_submission(session, interaction, now)
    except InvalidInteraction as e:
        logger.warning(f"Unable to read timesheet submission: {str(e)}")
        raise HTTPException(status_code=400, detail="unable to understand the action") from e
    except Exception as e:
        session.rollback()
        logger.error(f"Error handling timesheet submission: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to handle timesheet submission") from e

    if outcome.notice:
        background_tasks.add_task(notify_user, chat, interaction.user.id, outcome.notice)
    # Clears the modal
    return {"response_action": "clear"}


@app.get("/users", response_model=list[UserResponse])
def get_users(
    active: bool = Query(None, description="Only users with this activation flag"),
    session: Session = Depends(get_session),
):
    """List known users."""
    stmt = select(User)
    if active is not None:
        stmt = stmt.where(User.is_active == active)
    stmt = stmt.order_by(User.name, User.slack_id)
    return session.exec(stmt).all()


@app.patch("/users/{slack_id}", response_model=UserResponse)
def update_user_activation(
    slack_id: str,
    update: UserActivationUpdate,
    session: Session = Depends(get_session),
):
    """Turn reminders on or off for a user."""
    logger.info(f"Activation update for {slack_id}: is_active={update.is_active}")

    user = session.exec(select(User).where(User.slack_id == slack_id)).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        user.is_active = update.is_active
        session.add(user)
        session.commit()
        session.refresh(user)
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating user {slack_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return user


@app.get("/timesheets", response_model=list[TimesheetResponse])
def get_timesheets(
    date_from: str = Query(None, description="Start date filter (YYYY-MM-DD)"),
    date_to: str = Query(None, description="End date filter (YYYY-MM-DD)"),
    user_slack_id: str = Query(None, description="Only records of this user"),
    session: Session = Depends(get_session),
):
    """Get timesheet records with optional filtering."""
    logger.info(f"Timesheets request - from: {date_from}, to: {date_to}, user: {user_slack_id}")

    stmt = select(TimesheetRecord)
    if date_from:
        stmt = stmt.where(TimesheetRecord.submission_date >= date_from)
    if date_to:
        stmt = stmt.where(TimesheetRecord.submission_date <= date_to)
    if user_slack_id:
        stmt = stmt.where(TimesheetRecord.user_slack_id == user_slack_id)
    stmt = stmt.order_by(TimesheetRecord.submission_date, TimesheetRecord.id)
    return session.exec(stmt).all()


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Timesheet Reminder Bot API", "docs": "/docs"}
