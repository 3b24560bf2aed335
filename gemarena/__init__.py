"""Top-level package exports for gemarena.

Expose a small, stable API so callers can
`from gemarena import RulesEngine, Simulator`.
"""

from .engine import RulesEngine
from .simulation import Simulator
from .state import Board, GameState, PlayerState

__all__ = ["RulesEngine", "Simulator", "Board", "GameState", "PlayerState"]
