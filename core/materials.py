"""
Session material link lists.

Materials are stored as comma-joined URL strings in two independent columns:
initial_session_material (set when the schedule is created) and
session_material (links mentors add later). They are merged only for display.
"""

from dataclasses import dataclass

from .enums import Criticality
from .errors import BadInputError, SessionNotFoundError
from .external import guarded_call
from .session_store import SessionStore, session_lock
from .sessions import Session, SessionSelector

SEPARATOR = ", "


def parse_links(value: str | None) -> list[str]:
    """Split a stored link list, trimming whitespace and dropping blanks."""
    if not value:
        return []
    return [link.strip() for link in value.split(",") if link.strip()]


def join_links(links: list[str]) -> str:
    return SEPARATOR.join(links)


def merge_links(*link_lists: list[str]) -> list[str]:
    """Concatenate link lists, keeping the first occurrence of each link."""
    merged: list[str] = []
    seen: set[str] = set()
    for links in link_lists:
        for link in links:
            link = link.strip()
            if link and link not in seen:
                seen.add(link)
                merged.append(link)
    return merged


def add_links(existing: str | None, new_links: list[str]) -> str:
    """Append new links to a stored list, skipping ones already present."""
    return join_links(merge_links(parse_links(existing), new_links))


@dataclass
class SessionMaterials:
    initial_links: list[str]
    session_links: list[str]

    @classmethod
    def from_session(cls, session: Session) -> "SessionMaterials":
        return cls(
            initial_links=parse_links(session.initial_session_material),
            session_links=parse_links(session.session_material),
        )

    @property
    def links(self) -> list[str]:
        """All links for display, initial ones first."""
        return merge_links(self.initial_links, self.session_links)

    def removal_patch(self, link: str) -> tuple[str, dict] | None:
        """
        Work out which column a link lives in and the patch that removes it.

        The initial column wins when a link appears in both.

        Returns:
            (session attribute name, patch) or None if the link isn't stored
        """
        link = link.strip()
        if link in self.initial_links:
            remaining = [item for item in self.initial_links if item != link]
            return "initial_session_material", {
                "initial_session_material": join_links(remaining)
            }
        if link in self.session_links:
            remaining = [item for item in self.session_links if item != link]
            return "session_material", {"session_material": join_links(remaining)}
        return None


async def _load(
    store: SessionStore, table_name: str, selector: SessionSelector
) -> Session:
    return await guarded_call(
        "find_session",
        lambda: store.find(table_name, selector),
        criticality=Criticality.mandatory,
        context={"table_name": table_name},
    )


async def _save(
    store: SessionStore, table_name: str, session: Session, patch: dict
) -> None:
    await guarded_call(
        "update_session",
        lambda: store.update(table_name, session.selector(), patch),
        criticality=Criticality.mandatory,
        context={"table_name": table_name, "session_id": session.id},
    )


async def get_session_materials(
    table_name: str,
    selector: SessionSelector,
    store: SessionStore | None = None,
) -> SessionMaterials:
    store = store or SessionStore()
    session = await _load(store, table_name, selector)
    return SessionMaterials.from_session(session)


async def add_session_materials(
    table_name: str,
    selector: SessionSelector,
    links: list[str],
    store: SessionStore | None = None,
) -> SessionMaterials:
    """
    Append links to a session's mentor-added materials.

    Only the session_material column is written; initial materials are
    never modified here. Blank and already-present links are skipped.

    Raises:
        BadInputError: no non-blank link given
    """
    new_links = [link.strip() for link in links or [] if link and link.strip()]
    if not new_links:
        raise BadInputError("At least one material link is required")

    store = store or SessionStore()
    session = await _load(store, table_name, selector)
    async with session_lock(table_name, session.id):
        session = await _load(store, table_name, session.selector())
        value = add_links(session.session_material, new_links)
        if value != (session.session_material or ""):
            await _save(store, table_name, session, {"session_material": value})

    return SessionMaterials(
        initial_links=parse_links(session.initial_session_material),
        session_links=parse_links(value),
    )


async def delete_session_material(
    table_name: str,
    selector: SessionSelector,
    link: str,
    store: SessionStore | None = None,
) -> tuple[str, SessionMaterials]:
    """
    Remove one link from a session's materials.

    Returns:
        (column attribute the link was removed from, remaining materials)

    Raises:
        BadInputError: blank link
        SessionNotFoundError: the link isn't stored for this session
    """
    if not link or not link.strip():
        raise BadInputError("Material link is required")

    store = store or SessionStore()
    session = await _load(store, table_name, selector)
    async with session_lock(table_name, session.id):
        session = await _load(store, table_name, session.selector())
        materials = SessionMaterials.from_session(session)
        removal = materials.removal_patch(link)
        if removal is None:
            raise SessionNotFoundError("Material link not found for this session")
        column, patch = removal
        await _save(store, table_name, session, patch)

    if column == "initial_session_material":
        materials.initial_links = parse_links(patch[column])
    else:
        materials.session_links = parse_links(patch[column])
    return column, materials
