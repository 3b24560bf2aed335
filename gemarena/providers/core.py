"""Move provider contract.

A provider is asked for one move at a time: it receives the current state
and the instruction text and returns the proposed action together with a
free-text rationale. Providers may raise `TransportError` for network-level
trouble and `FormatError` for replies they cannot parse; the simulator
decides how to retry.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..actions import Action
from ..state import GameState


@dataclass(frozen=True)
class MoveProposal:
  rationale: str
  action: Action


class MoveProvider(ABC):
  """Base class for everything that can choose a move for one seat."""

  model: str

  def __init__(self, model: str) -> None:
    self.model = model

  def __repr__(self) -> str:
    return f"{self.__class__.__name__}(model={self.model!r})"

  @abstractmethod
  def propose_move(self, state: GameState, instructions: str) -> MoveProposal:
    """Return the move this provider wants to make in `state`."""


__all__ = ["MoveProposal", "MoveProvider"]
