"""Run configuration loaded from an optional TOML file.

Example::

  semi_auto = false
  debug_mode = false
  log_dir = "logs"

  [[players]]
  model = "google/gemini-3-flash-preview"

  [[players]]
  model = "anthropic/claude-haiku-4.5"
  [players.reasoning]
  enabled = true
  effort = "low"

  [retry]
  max_logic_retries = 3
"""
import os
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, NonNegativeInt, PositiveFloat, PositiveInt, ValidationError, field_validator

from .errors import ConfigurationError
from .events import PathLike

API_KEY_ENV = "OPENROUTER_API_KEY"
RANDOM_MODEL = "random"
DEFAULT_MODELS = ("google/gemini-3-flash-preview", "anthropic/claude-haiku-4.5")


class ReasoningConfig(BaseModel):
  """Extended-thinking options forwarded to models that support them."""
  enabled: bool = False
  effort: Literal["low", "medium", "high"] = "medium"
  exclude: bool = True


class PlayerConfig(BaseModel):
  model: str
  reasoning: ReasoningConfig = Field(default_factory=ReasoningConfig)

  @property
  def is_remote(self) -> bool:
    return self.model != RANDOM_MODEL


class RetryConfig(BaseModel):
  max_logic_retries: PositiveInt = 3
  initial_backoff: PositiveFloat = 1.0
  max_backoff: PositiveFloat = 30.0
  max_network_wait: PositiveFloat = 600.0
  request_timeout: PositiveFloat = 120.0


def _default_players() -> list[PlayerConfig]:
  return [PlayerConfig(model=m) for m in DEFAULT_MODELS]


class ArenaConfig(BaseModel):
  players: list[PlayerConfig] = Field(default_factory=_default_players)
  semi_auto: bool = False
  debug_mode: bool = False
  log_dir: Path = Path("logs")
  seed: int | None = None
  max_rounds: NonNegativeInt | None = None
  retry: RetryConfig = Field(default_factory=RetryConfig)

  @field_validator('players', mode='after')
  @classmethod
  def _check_two_players(cls, v: list[PlayerConfig]) -> list[PlayerConfig]:
    if len(v) != 2:
      raise ValueError(f"exactly two players are required, got {len(v)}")
    return v

  @property
  def player_models(self) -> list[str]:
    return [p.model for p in self.players]

  @classmethod
  def load(cls, path: PathLike | None = None) -> 'ArenaConfig':
    """Load from a TOML file, or return the defaults when `path` is None."""
    if path is None:
      return cls()
    try:
      with open(path, "rb") as f:
        data = tomllib.load(f)
    except OSError as e:
      raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
      raise ConfigurationError(f"Malformed config file {path}: {e}") from e
    try:
      return cls.model_validate(data)
    except ValidationError as e:
      raise ConfigurationError(f"Invalid config file {path}: {e}") from e

  def with_models(self, models: Sequence[str]) -> 'ArenaConfig':
    """Return a copy whose seats use `models`, keeping per-seat reasoning options."""
    if len(models) != len(self.players):
      raise ConfigurationError(f"expected {len(self.players)} models, got {len(models)}")
    players = [p.model_copy(update={'model': m}) for p, m in zip(self.players, models)]
    return self.model_copy(update={'players': players})


def require_api_key(config: ArenaConfig, environ: Mapping[str, str] | None = None) -> str | None:
  """Return the OpenRouter key, or None when every seat is offline.

  Raises `ConfigurationError` if a remote model is configured and the key
  is missing.
  """
  environ = os.environ if environ is None else environ
  if not any(p.is_remote for p in config.players):
    return None
  key = environ.get(API_KEY_ENV, "").strip()
  if not key:
    raise ConfigurationError(f"{API_KEY_ENV} environment variable is not set.")
  return key


__all__ = [
  "ArenaConfig",
  "PlayerConfig",
  "ReasoningConfig",
  "RetryConfig",
  "require_api_key",
  "API_KEY_ENV",
  "RANDOM_MODEL",
]
