"""The three move kinds a player can make.

Actions are plain immutable values. They carry no rule logic: legality and
effects live in `RulesEngine`, which dispatches on the concrete class with a
`match` statement. `serialize_action` / `deserialize_action` define the
payload stored in Action records of the event log.
"""
from dataclasses import dataclass, field
from collections.abc import Mapping
from typing import TypeAlias

from .typings import ActionType, CardLevel, Gem, TokenBank, _as_token_bank


@dataclass(frozen=True)
class TakeTokens:
  """Take 3 different colours (1 each) or 2 of one colour, optionally
  returning tokens to stay within the hand limit."""
  tokens: TokenBank = field(default_factory=TokenBank)
  returns: TokenBank = field(default_factory=TokenBank)

  type = ActionType.TAKE_TOKENS

  def __post_init__(self):
    object.__setattr__(self, 'tokens', _as_token_bank(self.tokens))
    object.__setattr__(self, 'returns', _as_token_bank(self.returns))

  @classmethod
  def create(cls, *gems: Gem, ret_map: Mapping[Gem, int] | None = None) -> 'TakeTokens':
    """Build from a list of gems, e.g. `create(Gem.RED, Gem.RED)` for a 2-take."""
    counts: dict[Gem, int] = {}
    for g in gems:
      counts[g] = counts.get(g, 0) + 1
    return cls(tokens=TokenBank(counts), returns=TokenBank(ret_map or {}))

  def __str__(self) -> str:
    if self.returns:
      return f"Take({self.tokens}-{self.returns})"
    return f"Take({self.tokens})"

  def to_dict(self) -> dict:
    return {
      'type': self.type.value,
      'tokens': self.tokens.to_dict(),
      'returns': self.returns.to_dict(),
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'TakeTokens':
    return cls(tokens=TokenBank.from_dict(d.get('tokens')),
               returns=TokenBank.from_dict(d.get('returns')))


@dataclass(frozen=True)
class ReserveCard:
  """Reserve a face-up card by id, or the top card of a deck (blind).

  When both are given the card id wins.
  """
  card_id: str | None = None
  deck_level: CardLevel | None = None
  returns: TokenBank = field(default_factory=TokenBank)

  type = ActionType.RESERVE_CARD

  def __post_init__(self):
    object.__setattr__(self, 'returns', _as_token_bank(self.returns))
    if self.deck_level is not None and not isinstance(self.deck_level, CardLevel):
      object.__setattr__(self, 'deck_level', CardLevel(self.deck_level))

  def __str__(self) -> str:
    target = f"<{self.card_id}>" if self.card_id is not None else f"deck {self.deck_level!s}"
    if self.returns:
      return f"Reserve({target}-{self.returns})"
    return f"Reserve({target})"

  def to_dict(self) -> dict:
    return {
      'type': self.type.value,
      'card_id': self.card_id,
      'deck_level': str(self.deck_level) if self.deck_level is not None else None,
      'returns': self.returns.to_dict(),
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'ReserveCard':
    level = d.get('deck_level')
    return cls(card_id=d.get('card_id'),
               deck_level=CardLevel[level] if level else None,
               returns=TokenBank.from_dict(d.get('returns')))


@dataclass(frozen=True)
class PurchaseCard:
  """Buy a face-up or reserved card; payment is computed by the engine."""
  card_id: str

  type = ActionType.PURCHASE_CARD

  def __str__(self) -> str:
    return f"Purchase(<{self.card_id}>)"

  def to_dict(self) -> dict:
    return {'type': self.type.value, 'card_id': self.card_id}

  @classmethod
  def from_dict(cls, d: dict) -> 'PurchaseCard':
    return cls(card_id=d['card_id'])


Action: TypeAlias = TakeTokens | ReserveCard | PurchaseCard


def serialize_action(action: Action) -> dict:
  """Return the JSON-serializable payload of `action`."""
  return action.to_dict()


def deserialize_action(d: dict) -> Action:
  """Rebuild an action from `serialize_action` output.

  Raises ValueError on an unknown or missing `type` tag.
  """
  match ActionType(d.get('type')):
    case ActionType.TAKE_TOKENS:
      return TakeTokens.from_dict(d)
    case ActionType.RESERVE_CARD:
      return ReserveCard.from_dict(d)
    case ActionType.PURCHASE_CARD:
      return PurchaseCard.from_dict(d)


__all__ = [
  "Action",
  "TakeTokens",
  "ReserveCard",
  "PurchaseCard",
  "serialize_action",
  "deserialize_action",
]
