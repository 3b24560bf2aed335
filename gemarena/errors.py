"""Exception types shared across the arena.

Recoverable failures (`RuleViolation`, `FormatError`, `TransportError`) are
absorbed by the simulator's retry logic. `ReconstructionError` and
`ConfigurationError` are fatal and abort the run.
"""


class GameError(Exception):
  """Base class for every error raised by gemarena."""


class RuleViolation(GameError, ValueError):
  """An action is illegal in the given state."""


class FormatError(GameError):
  """A move provider replied with something that cannot be parsed."""


class TransportError(GameError):
  """A network-level failure talking to a move provider."""


class ReconstructionError(GameError):
  """An event log lacks the records needed to resume a game."""


class ConfigurationError(GameError):
  """Missing credential or malformed configuration."""


__all__ = [
  "GameError",
  "RuleViolation",
  "FormatError",
  "TransportError",
  "ReconstructionError",
  "ConfigurationError",
]
