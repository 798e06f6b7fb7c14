import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


class Settings:
    SLACK_BOT_TOKEN: str = os.getenv("SLACK_BOT_TOKEN", "")
    # Calendar day and the submission cutoff are evaluated in this zone
    ORG_TIMEZONE: str = os.getenv("ORG_TIMEZONE", "Asia/Kolkata")
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")
    REMINDER_TIMES: str = os.getenv("REMINDER_TIMES", "18:30,18:45,19:00")
    REMINDER_DAYS: str = os.getenv("REMINDER_DAYS", "mon-fri")

    @property
    def org_tz(self) -> ZoneInfo:
        return ZoneInfo(self.ORG_TIMEZONE)

    @property
    def reminder_times(self) -> list[tuple[int, int]]:
        """Parse REMINDER_TIMES ("HH:MM,HH:MM") into (hour, minute) pairs."""
        times = []
        for raw in self.REMINDER_TIMES.split(","):
            raw = raw.strip()
            if not raw:
                continue
            hour, minute = raw.split(":", 1)
            times.append((int(hour), int(minute)))
        return times


settings = Settings()
