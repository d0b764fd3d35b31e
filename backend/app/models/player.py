from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.room import Room
    from app.models.team import Team


class PlayerStatus(str, Enum):
    active = "active"
    waiting = "waiting"


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="room.id", index=True)
    player_name: str
    added_at: Optional[datetime] = Field(default_factory=datetime.utcnow)  # join order
    added_by: Optional[str] = Field(default=None)  # null for anonymous/legacy entries
    user_id: Optional[str] = Field(default=None, index=True)  # null = guest entry

    status: PlayerStatus = Field(default=PlayerStatus.waiting, sa_column=Column(String, nullable=False))
    position: int = Field(default=0)  # 1-based, dense within room

    # Canonical player -> team link; team rosters are derived from it
    team_id: Optional[int] = Field(default=None, foreign_key="team.id", index=True)

    # Relationships
    room: "Room" = Relationship(back_populates="players")
    team: Optional["Team"] = Relationship(back_populates="players")
