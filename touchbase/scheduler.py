import asyncio
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.orm import Session

from . import store
from .config import settings
from .db import Base, SessionLocal, engine
from .digest import build_digest
from .due import due_order, evaluate, group_by_contact
from .emailer import send_email
from .models import User

logger = logging.getLogger(__name__)


# ----------------------------
# Time helpers
# ----------------------------
def now_local() -> datetime:
    return datetime.now(tz=ZoneInfo(settings.TIMEZONE))


def default_reminder_time() -> str:
    return f"{settings.DIGEST_HOUR:02d}:{settings.DIGEST_MINUTE:02d}"


def reminder_due(user: User, now: datetime) -> bool:
    """True once the user's reminder time has passed and today's digest is unsent."""
    if user.last_digest_on == now.date():
        return False
    return now.strftime("%H:%M") >= (user.daily_reminder_time or default_reminder_time())


def _ctx_from_user(u: User, today) -> dict:
    return {
        "name": u.name,
        "from_name": settings.FROM_NAME,
        "app_url": settings.APP_BASE_URL.rstrip("/"),
        "today": today.isoformat(),
    }


# ----------------------------
# Digest batch
# ----------------------------
async def send_digests(now: datetime | None = None) -> int:
    now = now or now_local()
    # one "today" for every contact of every user in this run
    today = now.date()
    db: Session = SessionLocal()
    sent, empty, errors = 0, 0, 0
    try:
        users = (
            db.query(User)
            .filter(User.digest_enabled.is_(True), User.email.isnot(None))
            .order_by(User.id)
            .all()
        )
        users = [u for u in users if reminder_due(u, now)]
        logger.info("[digest] picked %d users for %s", len(users), today.isoformat())

        for u in users:
            try:
                contacts = store.list_contacts(db, u.id)
                grouped = group_by_contact(store.list_touchpoints(db, [c.id for c in contacts]))
                built = build_digest(due_order(evaluate(contacts, grouped, today, settings.TIMEZONE)), _ctx_from_user(u, today))
                if built:
                    subject, body = built
                    await send_email(u.email, subject, body)
                    sent += 1
                else:
                    empty += 1

                u.last_digest_on = today
                db.add(u)
                db.commit()

                if built:
                    await asyncio.sleep(settings.PER_EMAIL_DELAY_SECONDS)
            except Exception:
                db.rollback()
                errors += 1
                logger.exception("[digest] error sending to %s", u.email)

        logger.info("[digest] done: sent=%d, nothing_due=%d, errors=%d", sent, empty, errors)
    finally:
        db.close()
    return sent


# ----------------------------
# Scheduler bootstrap
# ----------------------------
def build_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.TIMEZONE)

    # Reminder times are "HH:MM"; a quarter-hourly check is close enough
    scheduler.add_job(
        send_digests,
        "interval",
        minutes=15,
        id="digest_check",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )

    # Catch up shortly after boot in case a check was missed while down
    scheduler.add_job(
        send_digests,
        "date",
        run_date=datetime.now(tz=scheduler.timezone) + timedelta(seconds=10),
        id="digest_startup_check",
    )
    return scheduler


async def run_scheduler():
    Base.metadata.create_all(bind=engine)

    scheduler = build_scheduler()
    scheduler.start()
    logger.info("[scheduler] started with jobs: %s", scheduler.get_jobs())

    # Keep loop alive (Uvicorn lifespan)
    while True:
        await asyncio.sleep(3600)
