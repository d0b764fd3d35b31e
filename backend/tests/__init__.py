# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from app.models.match import Match  # noqa: F401
from app.models.player import Player  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.team import Team  # noqa: F401
