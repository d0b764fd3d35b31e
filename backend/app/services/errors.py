"""
Room engine errors.

Every engine failure derives from RoomEngineError so routes can translate it in one
place. Store (SQLAlchemy) errors are never wrapped; they propagate after rollback.
"""


class RoomEngineError(Exception):
    """Base class for roster/allocation/schedule failures"""

    pass


# ----------------------------------------------------------------------------
# Not found
# ----------------------------------------------------------------------------


class NotFoundError(RoomEngineError):
    """A referenced record no longer exists"""

    entity = "Record"

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"{self.entity} {record_id} not found")


class RoomNotFoundError(NotFoundError):
    entity = "Room"


class PlayerNotFoundError(NotFoundError):
    entity = "Player"


class TeamNotFoundError(NotFoundError):
    entity = "Team"


class MatchNotFoundError(NotFoundError):
    entity = "Match"


# ----------------------------------------------------------------------------
# Invalid input (rejected before any write)
# ----------------------------------------------------------------------------


class InvalidInputError(RoomEngineError):
    pass


class InvalidSettingsError(InvalidInputError):
    """Capacity or team-size setting is not a positive integer"""

    pass


class InvalidScoreError(InvalidInputError):
    """Score is negative or not an integer"""

    pass


# ----------------------------------------------------------------------------
# Preconditions
# ----------------------------------------------------------------------------


class PreconditionError(RoomEngineError):
    """Operation cannot run against the room's current state"""

    pass


class ConfirmationRequiredError(PreconditionError):
    """Destructive operation attempted without explicit confirmation"""

    pass


class JoinCodeExhaustedError(PreconditionError):
    """Could not find a free join code within the retry budget"""

    pass


class PermissionDeniedError(RoomEngineError):
    """Caller is neither the owner nor the creator of the entry"""

    pass
