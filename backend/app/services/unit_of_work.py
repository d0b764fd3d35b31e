"""
Per-room unit of work.

Each public room operation loads the room row with a write lock, applies every write
in the same session, and commits once. Any exception rolls the whole unit back, so
observers never see half of a recomputation.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlmodel import Session, select

from app.models.room import Room
from app.services.errors import RoomNotFoundError


def load_room(session: Session, room_id: int, for_update: bool = False) -> Room:
    """Fetch a room or raise RoomNotFoundError"""
    query = select(Room).where(Room.id == room_id)
    if for_update:
        # Row lock on servers that support it. SQLite ignores FOR UPDATE; its engine
        # opens every transaction with BEGIN IMMEDIATE instead (see app.database)
        query = query.with_for_update()
    room = session.exec(query).first()
    if room is None:
        raise RoomNotFoundError(room_id)
    return room


@contextmanager
def room_mutation(session: Session, room_id: int) -> Iterator[Room]:
    """Run one logical room mutation as a single transaction."""
    try:
        room = load_room(session, room_id, for_update=True)
        yield room
        session.commit()
    except Exception:
        session.rollback()
        raise
