"""
Room join codes.

Six characters from an alphabet without the ambiguous glyphs 0/O/1/I. Codes are unique
per room (unique index on room.code); generation retries on collision within a fixed
budget instead of trusting the small collision probability.
"""
import random
from typing import Optional

from sqlmodel import Session, select

from app.models.room import Room
from app.services.errors import JoinCodeExhaustedError

JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6
MAX_JOIN_CODE_ATTEMPTS = 10

_system_random = random.SystemRandom()


def generate_join_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or _system_random
    return "".join(rng.choices(JOIN_CODE_ALPHABET, k=JOIN_CODE_LENGTH))


def normalize_join_code(code: str) -> str:
    return (code or "").strip().upper()


def allocate_join_code(session: Session, rng: Optional[random.Random] = None) -> str:
    """Return a code no existing room uses."""
    for _ in range(MAX_JOIN_CODE_ATTEMPTS):
        code = generate_join_code(rng)
        taken = session.exec(select(Room.id).where(Room.code == code)).first()
        if taken is None:
            return code
    raise JoinCodeExhaustedError(f"No free join code after {MAX_JOIN_CODE_ATTEMPTS} attempts")
