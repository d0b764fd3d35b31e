from app.models.match import Match, MatchStatus
from app.models.player import Player, PlayerStatus
from app.models.room import PlayMode, Room, RoomStatus
from app.models.team import Team

__all__ = [
    "Room",
    "RoomStatus",
    "PlayMode",
    "Player",
    "PlayerStatus",
    "Team",
    "Match",
    "MatchStatus",
]
