"""Per-change lookup of the people attached to a session."""

import logging

from .cohorts import Cohort, parse_table_name
from .enums import Criticality
from .external import guarded_call
from .session_store import SessionStore
from .sessions import Contact

logger = logging.getLogger(__name__)


class ContactDirectory:
    """
    Contact lookups for one session change, fetched at most once each.

    All lookups are best-effort: a failing roster query yields no contacts
    rather than failing the change.
    """

    def __init__(self, store: SessionStore, table_name: str):
        self.store = store
        self.table_name = table_name
        self.cohort: Cohort | None = parse_table_name(table_name)
        self._mentors: dict[int, Contact | None] = {}
        self._students: list[Contact] | None = None
        self._administrators: list[Contact] | None = None

    async def mentor(self, mentor_id: int | None) -> Contact | None:
        if mentor_id is None:
            return None
        if mentor_id not in self._mentors:
            mentor = await guarded_call(
                "get_mentor",
                lambda: self.store.get_mentor(mentor_id),
                criticality=Criticality.best_effort,
                context={"mentor_id": mentor_id},
            )
            if mentor is None:
                logger.warning(f"Mentor {mentor_id} not found")
            self._mentors[mentor_id] = mentor
        return self._mentors[mentor_id]

    async def students(self) -> list[Contact]:
        """Students of the session's cohort; none if the cohort can't be parsed."""
        if self._students is None:
            if self.cohort is None:
                logger.warning(
                    f"Could not parse cohort from {self.table_name}, skipping students"
                )
                self._students = []
            else:
                self._students = await guarded_call(
                    "get_cohort_students",
                    lambda: self.store.get_cohort_students(self.cohort),
                    criticality=Criticality.best_effort,
                    fallback=[],
                    context={"cohort": self.cohort.label},
                )
        return self._students

    async def administrators(self) -> list[Contact]:
        if self._administrators is None:
            self._administrators = await guarded_call(
                "get_administrators",
                self.store.get_administrators,
                criticality=Criticality.best_effort,
                fallback=[],
            )
        return self._administrators
