from ..config import ArenaConfig, PlayerConfig
from ..engine import RulesEngine
from .core import MoveProposal, MoveProvider
from .openrouter import OpenRouterProvider
from .random import RandomProvider


def build_provider(player: PlayerConfig, *, engine: RulesEngine, api_key: str | None,
                   timeout: float, seed: int | None = None) -> MoveProvider:
  """Instantiate the provider for one seat: `random` runs offline, any
  other model id goes to OpenRouter."""
  if not player.is_remote:
    return RandomProvider(engine, seed=seed)
  return OpenRouterProvider(player.model, api_key=api_key, reasoning=player.reasoning, timeout=timeout)


def build_providers(config: ArenaConfig, *, engine: RulesEngine, api_key: str | None) -> list[MoveProvider]:
  return [
    build_provider(p, engine=engine, api_key=api_key, timeout=config.retry.request_timeout,
                   seed=None if config.seed is None else config.seed + seat)
    for seat, p in enumerate(config.players)
  ]


__all__ = [
  "MoveProposal",
  "MoveProvider",
  "OpenRouterProvider",
  "RandomProvider",
  "build_provider",
  "build_providers",
]
