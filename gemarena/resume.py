"""Rebuild the state of an interrupted game from its event log."""
import logging
from dataclasses import dataclass

from .errors import ReconstructionError
from .events import ActionRecorded, GameEnded, GameStarted, PathLike, TurnStarted, read_events
from .state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumeData:
  game_id: str
  player_models: tuple[str, ...]
  state: GameState
  game_ended: bool = False


def load_resume_data(path: PathLike) -> ResumeData:
  """Scan a log once, in order, and pick the snapshot to continue from.

  The preferred snapshot is the TurnStarted record that directly follows the
  last completed Action (accepted or forfeited): the state after that move
  with the next turn begun. Without one, the last TurnStarted seen is used
  and that turn is played again.
  """
  started: GameStarted | None = None
  after_completed: TurnStarted | None = None
  last_turn: TurnStarted | None = None
  action_completed = False
  game_ended = False

  for event in read_events(path):
    match event:
      case GameStarted():
        started = event
      case TurnStarted():
        if action_completed:
          after_completed = event
          action_completed = False
        last_turn = event
      case ActionRecorded():
        if event.completed:
          action_completed = True
      case GameEnded():
        game_ended = True
      case _:
        pass

  if started is None:
    raise ReconstructionError(f"No GameStarted record found in {path}")
  if last_turn is None:
    raise ReconstructionError(f"No TurnStarted record found in {path}")

  if after_completed is not None:
    chosen = after_completed
    logger.info("Resuming from turn %d (after last completed action)", chosen.turn)
  else:
    chosen = last_turn
    logger.info("Resuming from turn %d (last available state)", chosen.turn)

  try:
    state = chosen.state
  except (KeyError, ValueError, TypeError, AttributeError) as e:
    raise ReconstructionError(f"Invalid state snapshot in {path}: {e}") from e

  return ResumeData(
    game_id=started.game_id,
    player_models=tuple(started.player_models),
    state=state,
    game_ended=game_ended,
  )


__all__ = ["ResumeData", "load_resume_data"]
