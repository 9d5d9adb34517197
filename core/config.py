"""
Centralized configuration for the session scheduling service.

All settings come from environment variables (loaded from .env.local / .env
by main.py and the root conftest). Accessors read the environment on every
call so tests can override values with patch.dict(os.environ, ...).
"""

import os


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def is_production() -> bool:
    """Check if running on Railway (production environment)."""
    return bool(os.environ.get("RAILWAY_ENVIRONMENT"))


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_database_url() -> str | None:
    """PostgreSQL connection string for the schedule store."""
    return os.environ.get("DATABASE_URL") or None


def get_db_pool_size() -> int:
    """Connections kept open per process (overflow allows twice as many more)."""
    return int(os.getenv("DB_POOL_SIZE", "5"))


def get_schedule_timezone() -> str:
    """Timezone that schedule table dates/times are expressed in."""
    return os.getenv("SCHEDULE_TIMEZONE", "Asia/Kolkata")


def get_default_session_time() -> str:
    """Start time used for sessions that have no time set (HH:MM)."""
    return os.getenv("DEFAULT_SESSION_TIME", "19:00")


def get_meeting_duration_minutes() -> int:
    """Default length of a regenerated meeting."""
    return int(os.getenv("MEETING_DURATION_MINUTES", "90"))


def get_swap_meeting_duration_minutes() -> int:
    """Length of a meeting regenerated because of a mentor swap."""
    return int(os.getenv("SWAP_MEETING_DURATION_MINUTES", "60"))


def get_default_country_code() -> str:
    """Country code prefixed to 10-digit local phone numbers."""
    return os.getenv("DEFAULT_COUNTRY_CODE", "91")


def get_external_call_timeout() -> float:
    """Upper bound in seconds for a single external call."""
    return float(os.getenv("EXTERNAL_CALL_TIMEOUT_SECONDS", "5"))


def get_meeting_call_timeout() -> float:
    """Upper bound in seconds for a whole meeting create or delete (several Graph calls)."""
    return float(os.getenv("MEETING_CALL_TIMEOUT_SECONDS", "20"))


def get_notification_delays_ms() -> dict[str, int]:
    """
    Pause after each send, per audience, in milliseconds.

    Students are messaged in bulk so they get the shortest pause;
    mentors and administrators are few and get a longer one.
    """
    return {
        "student": int(os.getenv("NOTIFY_DELAY_STUDENT_MS", "100")),
        "mentor": int(os.getenv("NOTIFY_DELAY_MENTOR_MS", "600")),
        "admin": int(os.getenv("NOTIFY_DELAY_ADMIN_MS", "600")),
    }


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("MS_TENANT_ID", "Microsoft tenant for Teams meetings", False),
    ("MS_CLIENT_ID", "Microsoft app client ID", False),
    ("MS_CLIENT_SECRET", "Microsoft app client secret", False),
    ("MS_ORGANIZER_USER_ID", "User that organizes Teams meetings", False),
    ("SENDGRID_API_KEY", "SendGrid key for email notifications", False),
    ("WHATSAPP_PHONE_NUMBER_ID", "WhatsApp Cloud API sender number", False),
    ("WHATSAPP_ACCESS_TOKEN", "WhatsApp Cloud API token", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production() and required_in_dev:
                errors.append(f"  ✗ {name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
