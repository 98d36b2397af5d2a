"""Server package initialization."""

# Expose primary APIs for convenience
from .noise import noise2d, fractal
from .terrain import TerrainKind, TerrainField, classify, field_for
from .travel import Journey, TravelPlanner, observe, cancel
from .combat import CombatParticipant, CombatOutcome, resolve
from .proximity import within_range, can_interact
from .config import START_POS, DEFAULT_BALANCE, GameBalance
