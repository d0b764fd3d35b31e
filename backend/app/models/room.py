from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.match import Match
    from app.models.player import Player
    from app.models.team import Team


class PlayMode(str, Enum):
    league = "league"
    rotational = "rotational"


class RoomStatus(str, Enum):
    open = "open"
    allocating = "allocating"
    in_progress = "in-progress"
    completed = "completed"


class Room(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True, max_length=6)  # shareable join code
    play_date: datetime
    description: str = Field(default="")
    location_url: Optional[str] = None

    # Capacity settings. Effective capacity = min(accepted_capacity, num_teams * players_per_team)
    accepted_capacity: int
    num_teams: int
    players_per_team: int

    play_mode: PlayMode = Field(default=PlayMode.league, sa_column=Column(String, nullable=False))
    status: RoomStatus = Field(default=RoomStatus.open, sa_column=Column(String, nullable=False))
    created_by: str = Field(index=True)  # owner identity
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    players: List["Player"] = Relationship(back_populates="room")
    teams: List["Team"] = Relationship(back_populates="room")
    matches: List["Match"] = Relationship(back_populates="room")
