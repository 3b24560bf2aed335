"""RandomProvider: picks uniformly from legal actions, no network needed."""
import random

from ..config import RANDOM_MODEL
from ..engine import RulesEngine
from ..errors import FormatError
from ..state import GameState
from .core import MoveProposal, MoveProvider


class RandomProvider(MoveProvider):
  def __init__(self, engine: RulesEngine, *, seed: int | None = None) -> None:
    super().__init__(RANDOM_MODEL)
    self.engine = engine
    # local RNG so games are reproducible for a given seed
    self.rng = random.Random(seed)

  def propose_move(self, state: GameState, instructions: str) -> MoveProposal:
    actions = self.engine.legal_actions(state)
    if not actions:
      raise FormatError("No legal actions available")
    action = self.rng.choice(actions)
    return MoveProposal(rationale=f"Picked {action} at random from {len(actions)} legal moves.", action=action)


__all__ = ["RandomProvider"]
