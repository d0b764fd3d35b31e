from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.room import Room
    from app.models.team import Team


class MatchStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="room.id", index=True)
    team1_id: int = Field(foreign_key="team.id")
    team2_id: int = Field(foreign_key="team.id")

    status: MatchStatus = Field(default=MatchStatus.scheduled, sa_column=Column(String, nullable=False))
    team1_score: Optional[int] = Field(default=None)
    team2_score: Optional[int] = Field(default=None)

    round: int  # 1-based
    order: int = Field(index=True)  # global display sequence within room
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    room: "Room" = Relationship(back_populates="matches")
    team1: "Team" = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.team1_id"})
    team2: "Team" = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.team2_id"})
