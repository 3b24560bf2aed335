"""Append-only NDJSON event log.

Each record is a pydantic model serialized with `model_dump_json` on its
own line; `event_type` tells the kinds apart when reading back. Writes are
flushed and fsynced one record at a time, so after a crash the file always
holds a prefix of complete records (plus, at worst, one torn final line).
"""
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, Literal, TextIO, TypeAlias

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .actions import Action, deserialize_action
from .errors import ReconstructionError
from .state import GameState

logger = logging.getLogger(__name__)

PathLike: TypeAlias = str | Path

LOG_SUFFIX = ".jsonl"


def _now() -> datetime:
  return datetime.now(timezone.utc)


class _Event(BaseModel):
  timestamp: datetime = Field(default_factory=_now)


class GameStarted(_Event):
  event_type: Literal["GAME_STARTED"] = "GAME_STARTED"
  game_id: str
  player_models: list[str]
  initial_state: dict[str, Any]

  @property
  def state(self) -> GameState:
    return GameState.from_dict(self.initial_state)


class TurnStarted(_Event):
  event_type: Literal["TURN_STARTED"] = "TURN_STARTED"
  turn: int
  player_index: int
  game_state: dict[str, Any]

  @property
  def state(self) -> GameState:
    return GameState.from_dict(self.game_state)


class Reasoning(_Event):
  event_type: Literal["REASONING"] = "REASONING"
  player_index: int
  reasoning: str


class ActionRecorded(_Event):
  """Outcome of one proposal. A forfeited turn has no action; `error` says
  why a proposal was rejected or why the turn was forfeited."""
  event_type: Literal["ACTION"] = "ACTION"
  player_index: int
  action: dict[str, Any] | None
  success: bool
  forfeited: bool = False
  error: str | None = None

  @property
  def completed(self) -> bool:
    """True when this record closes the turn (accepted move or forfeit)."""
    return self.success or self.forfeited

  def parsed_action(self) -> Action | None:
    return deserialize_action(self.action) if self.action is not None else None


class Retry(_Event):
  event_type: Literal["RETRY"] = "RETRY"
  player_index: int
  attempt: int
  error: str


class GameEnded(_Event):
  event_type: Literal["GAME_ENDED"] = "GAME_ENDED"
  winner_index: int | None
  winner_reason: str | None
  final_scores: dict[int, int]


GameEvent: TypeAlias = Annotated[
  GameStarted | TurnStarted | Reasoning | ActionRecorded | Retry | GameEnded,
  Field(discriminator="event_type"),
]

_EVENT_ADAPTER: TypeAdapter[GameEvent] = TypeAdapter(GameEvent)


class EventLog:
  """Writer for one game's log file.

  The file is created exclusively: an existing file is never truncated or
  appended to by a new game.
  """

  path: Path
  _fh: TextIO | None

  def __init__(self, path: PathLike) -> None:
    self.path = Path(path)
    self.path.parent.mkdir(parents=True, exist_ok=True)
    self._fh = open(self.path, "x", encoding="utf-8")
    logger.info("Game event log created: %s", self.path)

  @classmethod
  def create(cls, log_dir: PathLike, game_id: str) -> 'EventLog':
    return cls(Path(log_dir) / f"{game_id}{LOG_SUFFIX}")

  def append(self, event: _Event) -> None:
    """Write one record and make it durable before returning."""
    if self._fh is None:
      raise ValueError(f"event log {self.path} is closed")
    self._fh.write(f"{event.model_dump_json()}\n")
    self._fh.flush()
    os.fsync(self._fh.fileno())

  def close(self) -> None:
    if self._fh is not None:
      self._fh.close()
      self._fh = None
      logger.info("Game event log closed: %s", self.path)

  def __enter__(self) -> 'EventLog':
    return self

  def __exit__(self, *exc) -> None:
    self.close()


def parse_event(line: str) -> GameEvent:
  return _EVENT_ADAPTER.validate_json(line)


def read_events(path: PathLike) -> list[GameEvent]:
  """Parse every record of a log file, in order.

  A malformed last line is treated as a torn write and skipped; a malformed
  line anywhere else raises `ReconstructionError`.
  """
  try:
    with open(path, "r", encoding="utf-8") as f:
      lines = [line for line in f if line.strip()]
  except OSError as e:
    raise ReconstructionError(f"Cannot read log file {path}: {e}") from e

  events: list[GameEvent] = []
  for i, line in enumerate(lines):
    try:
      events.append(parse_event(line))
    except ValidationError as e:
      if i == len(lines) - 1:
        logger.warning("Skipping malformed final record in %s: %s", path, e)
        break
      raise ReconstructionError(f"Malformed record {i + 1} in {path}: {e}") from e
  return events


__all__ = [
  "GameEvent",
  "GameStarted",
  "TurnStarted",
  "Reasoning",
  "ActionRecorded",
  "Retry",
  "GameEnded",
  "EventLog",
  "parse_event",
  "read_events",
]
