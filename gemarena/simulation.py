"""Turn orchestration: asks providers for moves, retries failures, applies
accepted moves and records every step in the event log.

Failure handling per turn:

- A rejected move, an unparsable reply or an unrecognised provider error
  uses up one of `max_logic_retries` attempts. Each retry re-sends the
  instructions with a description of the last error.
- A transient network failure is retried with exponential backoff inside
  the same attempt, until `max_network_wait` seconds have passed; after
  that it counts as a failed attempt.
- When every attempt fails the turn is forfeited: the seat passes and
  nothing else changes.

Every record is written to the log before the loop moves on, so the log
can always be replayed by `gemarena.resume`.
"""
import json
import logging
import time
from collections.abc import Callable, Sequence

from .actions import serialize_action
from .config import RetryConfig
from .engine import RulesEngine
from .errors import FormatError, RuleViolation, TransportError
from .events import ActionRecorded, EventLog, GameEnded, GameStarted, Reasoning, Retry, TurnStarted
from .prompts import build_instructions, build_retry_instructions
from .providers.core import MoveProposal, MoveProvider
from .render import format_state
from .state import GameState

logger = logging.getLogger(__name__)

NETWORK_ERROR_HINTS = ("Connection", "timeout", "UnknownHost", "Network")


def is_transient(error: BaseException) -> bool:
  """Return True for failures worth retrying with backoff."""
  if isinstance(error, (FormatError, RuleViolation)):
    return False
  if isinstance(error, (TransportError, TimeoutError, ConnectionError)):
    return True
  msg = str(error)
  return any(hint in msg for hint in NETWORK_ERROR_HINTS)


class Simulator:
  """Runs one game to completion (or until `max_rounds`)."""

  providers: tuple[MoveProvider, ...]
  engine: RulesEngine
  retry: RetryConfig

  def __init__(
      self,
      providers: Sequence[MoveProvider],
      *,
      engine: RulesEngine | None = None,
      retry: RetryConfig | None = None,
      semi_auto: bool = False,
      debug_mode: bool = False,
      max_rounds: int | None = None,
      sleep: Callable[[float], None] = time.sleep,
      clock: Callable[[], float] = time.monotonic,
      wait_for_user: Callable[[str], object] = input,
  ) -> None:
    self.providers = tuple(providers)
    self.engine = engine or RulesEngine()
    if len(self.providers) != self.engine.config.num_players:
      raise ValueError(f"expected {self.engine.config.num_players} providers, got {len(self.providers)}")
    self.retry = retry or RetryConfig()
    self.semi_auto = semi_auto
    self.debug_mode = debug_mode
    self.max_rounds = max_rounds
    self._sleep = sleep
    self._clock = clock
    self._wait_for_user = wait_for_user

  @property
  def models(self) -> list[str]:
    return [p.model for p in self.providers]

  def run(self, state: GameState, game_id: str, event_log: EventLog) -> GameState:
    """Play from `state` until the game is over and return the last state.

    An unexpected error is logged and ends the run; whatever was written to
    the log so far stays valid for resuming.
    """
    logger.info("--- Game Started (%s) ---", game_id)
    try:
      event_log.append(GameStarted(game_id=game_id, player_models=self.models, initial_state=state.to_dict()))
      while not state.game_over:
        if self.max_rounds is not None and state.turn > self.max_rounds:
          logger.warning("Stopping after %d rounds without a result", self.max_rounds)
          return state
        state = self.play_turn(state, event_log)
      self._finish(state, event_log)
    except Exception:
      logger.exception("An error occurred during the game simulation")
    return state

  def play_turn(self, state: GameState, event_log: EventLog) -> GameState:
    """Play the acting player's turn and return the state after it."""
    seat = state.current_player
    player = state.player
    logger.info("\n%s", format_state(state, self.models))
    logger.info("Turn %d - Player %d's move (score %d)", state.turn, seat, player.score)
    event_log.append(TurnStarted(turn=state.turn, player_index=seat, game_state=state.to_dict()))

    if self.debug_mode:
      logger.info("[DEBUG] Game State JSON:\n%s", json.dumps(state.to_dict(), indent=2))
    if self.semi_auto:
      self._wait_for_user(f"Press Enter to trigger Player {seat}'s move...")

    proposal, error = self.request_move(state, event_log)
    if proposal is None:
      event_log.append(ActionRecorded(player_index=seat, action=None, success=False, forfeited=True, error=error))
      return self.engine.forfeit_turn(state)

    state = state.with_player(
      player.with_reasoning(proposal.rationale, self.engine.config.reasoning_history_size))
    return self.engine.apply(state, proposal.action)

  def request_move(self, state: GameState, event_log: EventLog) -> tuple[MoveProposal | None, str]:
    """Return (validated proposal, ''), or (None, last error) once every
    attempt has failed."""
    seat = state.current_player
    provider = self.providers[seat]
    base = build_instructions(state.player.reasoning_history, self.engine.config.reasoning_history_size)
    last_error = ""

    for attempt in range(self.retry.max_logic_retries):
      instructions = base
      if attempt > 0:
        logger.warning("Retry attempt %d for Player %d. Error: %s", attempt, seat, last_error)
        event_log.append(Retry(player_index=seat, attempt=attempt, error=last_error))
        instructions = f"{base}\n\n{build_retry_instructions(last_error)}"

      try:
        proposal = self._call_with_backoff(provider, state, instructions)
      except FormatError as e:
        last_error = f"Malformed response: {e}"
        continue
      except TransportError as e:
        last_error = str(e)
        continue
      except Exception as e:
        last_error = f"Unexpected error: {e}"
        continue

      logger.info("Reasoning: %s", proposal.rationale)
      logger.info("Action: %s", proposal.action)
      event_log.append(Reasoning(player_index=seat, reasoning=proposal.rationale))
      try:
        payload = serialize_action(proposal.action)
      except (AttributeError, TypeError) as e:
        last_error = f"Malformed response: unsupported action {proposal.action!r} ({e})"
        continue
      try:
        self.engine.validate(state, proposal.action)
      except RuleViolation as e:
        last_error = f"Invalid action: {e}"
        event_log.append(ActionRecorded(player_index=seat, action=payload, success=False, error=last_error))
        continue
      event_log.append(ActionRecorded(player_index=seat, action=payload, success=True))
      return proposal, ""

    logger.error("Player %d failed to provide a valid action after %d attempts. Last error: %s. Skipping turn.",
                 seat, self.retry.max_logic_retries, last_error)
    return None, last_error

  def _call_with_backoff(self, provider: MoveProvider, state: GameState, instructions: str) -> MoveProposal:
    """Call the provider, sleeping and retrying on transient failures.

    Raises `TransportError` once the cumulative wait window is used up.
    """
    started = self._clock()
    backoff = self.retry.initial_backoff
    while True:
      try:
        return provider.propose_move(state, instructions)
      except Exception as e:
        if not is_transient(e):
          raise
        elapsed = self._clock() - started
        remaining = self.retry.max_network_wait - elapsed
        if remaining <= 0:
          raise TransportError(f"Network timeout after {elapsed:.0f}s: {e}") from e
        delay = min(backoff, remaining)
        logger.warning("Network error, retrying in %.1fs... (%s)", delay, e)
        self._sleep(delay)
        backoff = min(backoff * 2, self.retry.max_backoff)

  def _finish(self, state: GameState, event_log: EventLog) -> None:
    winner, _ = self.engine.decide_winner(state)
    logger.info("\n%s", format_state(state, self.models))
    logger.info("--- Game Over ---")
    logger.info("Winner: %s", state.winner_reason)
    for p in state.players:
      logger.info("Player %d: %d points", p.seat_id, p.score)
    event_log.append(GameEnded(
      winner_index=winner,
      winner_reason=state.winner_reason,
      final_scores={p.seat_id: p.score for p in state.players},
    ))


__all__ = ["Simulator", "is_transient"]
