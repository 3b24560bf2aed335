"""Command-line entry point.

Usage:
  gemarena [CONFIG.toml]                 Start a new game
  gemarena --resume LOG [CONFIG.toml]    Continue an interrupted game
"""
import argparse
import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from .config import ArenaConfig, require_api_key
from .engine import RulesEngine
from .errors import ConfigurationError, ReconstructionError
from .events import EventLog
from .providers import build_providers
from .resume import load_resume_data
from .simulation import Simulator
from .state import GameState

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s - %(message)s"


def new_game_id(now: datetime | None = None) -> str:
  now = now or datetime.now()
  return f"{now:%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:6]}"


def resumed_game_id(original: str, now: datetime | None = None) -> str:
  now = now or datetime.now()
  return f"{original}_resumed_{now:%H%M%S}"


def _run(config: ArenaConfig, state: GameState, game_id: str, engine: RulesEngine) -> GameState:
  api_key = require_api_key(config)
  providers = build_providers(config, engine=engine, api_key=api_key)
  for seat, p in enumerate(config.players):
    logger.info("Configured Player %d with: %s (reasoning: %s)", seat, p.model,
                p.reasoning.effort if p.reasoning.enabled else "disabled")
  logger.info("Semi-Auto Mode: %s", "ENABLED" if config.semi_auto else "DISABLED")
  logger.info("Debug Mode: %s", "ENABLED" if config.debug_mode else "DISABLED")

  simulator = Simulator(
    providers,
    engine=engine,
    retry=config.retry,
    semi_auto=config.semi_auto,
    debug_mode=config.debug_mode,
    max_rounds=config.max_rounds,
  )
  with EventLog.create(config.log_dir, game_id) as event_log:
    return simulator.run(state, game_id, event_log)


def start_game(config: ArenaConfig) -> GameState:
  engine = RulesEngine()
  state = engine.new_game(seed=config.seed)
  return _run(config, state, new_game_id(), engine)


def resume_game(log_path: str | Path, config: ArenaConfig) -> GameState:
  """Continue the game recorded in `log_path` under a new game id.

  Models come from the log; everything else comes from `config`.
  """
  data = load_resume_data(log_path)
  if data.game_ended:
    raise ReconstructionError(f"Game {data.game_id} in {log_path} has already ended")
  logger.info("--- Resuming Game from %s ---", log_path)
  logger.info("Original Game ID: %s", data.game_id)
  logger.info("Resuming at Turn %d, Player %d's turn", data.state.turn, data.state.current_player)
  config = config.with_models(data.player_models)
  return _run(config, data.state, resumed_game_id(data.game_id), RulesEngine())


def main(argv: Sequence[str] | None = None) -> int:
  parser = argparse.ArgumentParser(
    prog="gemarena",
    description="Two-player Splendor matches between hosted language models.",
  )
  parser.add_argument("config", nargs="?", help="TOML config file (defaults are used when omitted)")
  parser.add_argument("--resume", metavar="LOG", help="resume an interrupted game from its event log")
  parser.add_argument("--verbose", "-v", action="store_true", help="log debug messages")
  args = parser.parse_args(argv)

  logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
  try:
    config = ArenaConfig.load(args.config)
    if args.resume:
      resume_game(args.resume, config)
    else:
      start_game(config)
  except ConfigurationError as e:
    logger.error("Configuration error: %s", e)
    return 1
  except ReconstructionError as e:
    logger.error("Failed to resume game: %s", e)
    return 1
  except OSError as e:
    logger.error("Cannot create event log: %s", e)
    return 1
  return 0


__all__ = ["main", "start_game", "resume_game", "new_game_id", "resumed_game_id"]
