"""
Core business logic - platform-agnostic.
Session change reconciliation for cohort schedules: meetings, conflict
checks and notifications. Used by the web API or any other interface.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Errors surfaced to callers
from .errors import (
    SessionChangeError, BadInputError, SessionNotFoundError, MentorConflictError
)

# Sessions and cohorts
from .cohorts import Cohort, parse_table_name, build_table_name
from .sessions import Session, SessionSelector, Contact

# Session store
from .session_store import SessionStore

# Session materials
from .materials import (
    SessionMaterials, add_session_materials, get_session_materials, delete_session_material
)

# Session change orchestration
from .orchestrator import (
    UNSET, SessionChange, SessionChangeResult,
    apply_session_change, reschedule_session, swap_mentor, classify_change,
)

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Errors
    'SessionChangeError', 'BadInputError', 'SessionNotFoundError', 'MentorConflictError',
    # Sessions and cohorts
    'Cohort', 'parse_table_name', 'build_table_name',
    'Session', 'SessionSelector', 'Contact',
    # Store
    'SessionStore',
    # Materials
    'SessionMaterials', 'add_session_materials', 'get_session_materials',
    'delete_session_material',
    # Orchestration
    'UNSET', 'SessionChange', 'SessionChangeResult',
    'apply_session_change', 'reschedule_session', 'swap_mentor', 'classify_change',
]
