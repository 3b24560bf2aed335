from enum import Enum, IntEnum
from collections.abc import Iterator, Mapping
from typing import Any, TypeAlias

from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass as pydantic_dataclass


class Gem(Enum):
  """Token colours.

  `GOLD` is the wildcard: it can stand in for any colour when paying for a
  card, but it is never taken from the bank directly (only granted on
  reserve). Values are the lowercase names used in serialization.
  """
  WHITE = "white"
  BLUE = "blue"
  GREEN = "green"
  RED = "red"
  BLACK = "black"
  GOLD = "gold"

  def __str__(self) -> str:  # pragma: no cover - tiny convenience
    return self.value

  @classmethod
  def colors(cls) -> tuple['Gem', ...]:
    """The five takeable colours, in display order."""
    return tuple(g for g in cls if g != cls.GOLD)

  def short_str(self) -> str:  # pragma: no cover - tiny convenience
    if self == Gem.BLACK:
      return 'K'  # avoid confusion with BLUE
    if self == Gem.GOLD:
      return 'D'  # avoid confusion with GREEN
    return self.value[0].upper()

  def color_circle(self) -> str:  # pragma: no cover - tiny convenience
    """Return a coloured circle emoji for this gem."""
    return {
      Gem.WHITE: "⚪",
      Gem.BLUE: "🔵",
      Gem.GREEN: "🟢",
      Gem.RED: "🔴",
      Gem.BLACK: "⚫",
      Gem.GOLD: "🟡",
    }[self]


class CardLevel(IntEnum):
  """The three card tiers; each has its own deck and face-up row."""
  LEVEL_1 = 1
  LEVEL_2 = 2
  LEVEL_3 = 3

  def __str__(self) -> str:
    return self.name


class ActionType(Enum):
  TAKE_TOKENS = "take_tokens"
  RESERVE_CARD = "reserve_card"
  PURCHASE_CARD = "purchase_card"


TokenBankInput: TypeAlias = 'TokenBank | Mapping[Gem, int] | Mapping[str, int]'


@pydantic_dataclass(frozen=True)
class TokenBank:
  """Immutable non-negative multiset of gems.

  Construction accepts another TokenBank, a mapping, or an iterable of
  (gem, count) pairs. The input is copied, negative counts are rejected
  and zero counts are dropped, so two banks holding the same tokens compare
  equal regardless of how they were built.
  """
  counts: dict[Gem, int] = Field(default_factory=dict)

  @field_validator('counts', mode='before')
  @classmethod
  def _copy_input(cls, vals):
    if isinstance(vals, TokenBank):
      return dict(vals.counts)
    return dict(vals)

  @field_validator('counts', mode='after')
  @classmethod
  def _check_non_negative(cls, counts: dict[Gem, int]) -> dict[Gem, int]:
    for gem, n in counts.items():
      if n < 0:
        raise ValueError(f"Token count for {gem.value} cannot be negative: {n}")
    # canonical order, zeros removed
    return {g: counts[g] for g in Gem if counts.get(g, 0) > 0}

  def __hash__(self) -> int:
    return hash(frozenset(self.counts.items()))

  def __iter__(self) -> Iterator[tuple[Gem, int]]:
    return iter(self.counts.items())

  def __len__(self) -> int:
    return len(self.counts)

  def get(self, gem: Gem) -> int:
    return self.counts.get(gem, 0)

  def total(self) -> int:
    """Total number of tokens."""
    return sum(self.counts.values())

  def distinct(self) -> int:
    """Number of colours with a positive count."""
    return len(self.counts)

  def as_dict(self) -> dict[Gem, int]:
    return dict(self.counts)

  def plus(self, other: 'TokenBankInput') -> 'TokenBank':
    merged = dict(self.counts)
    for gem, n in TokenBank(other):
      merged[gem] = merged.get(gem, 0) + n
    return TokenBank(merged)

  def minus(self, other: 'TokenBankInput') -> 'TokenBank':
    """Return a new bank with `other` removed; raises ValueError if that
    would leave any count negative."""
    remaining = dict(self.counts)
    for gem, n in TokenBank(other):
      remaining[gem] = remaining.get(gem, 0) - n
    return TokenBank(remaining)

  def to_dict(self) -> dict[str, int]:
    return {g.value: n for g, n in self.counts.items()}

  @classmethod
  def from_dict(cls, d: Mapping[str, int] | None) -> 'TokenBank':
    return cls({Gem(g): int(n) for g, n in (d or {}).items()})

  def __str__(self) -> str:  # pragma: no cover - convenience
    return "".join(f"{n}{g.color_circle()}" for g, n in self) or "⭕"


def _as_token_bank(v: Any) -> Any:
  if v is None or isinstance(v, TokenBank):
    return v if v is not None else TokenBank()
  return TokenBank(v)


@pydantic_dataclass(frozen=True)
class DevelopmentCard:
  """A purchasable card.

  - `bonus` is the colour discount granted permanently on purchase.
  - `points` is the prestige awarded on purchase.
  - `cost` maps colours to positive amounts.
  """
  id: str
  level: CardLevel
  bonus: Gem
  points: int = 0
  cost: TokenBank = Field(default_factory=TokenBank)

  @field_validator('cost', mode='before')
  @classmethod
  def _wrap_cost(cls, v):
    return _as_token_bank(v)

  def to_dict(self) -> dict:
    """Return a JSON-serializable dict representation of the card."""
    return {
      'id': self.id,
      'level': int(self.level),
      'bonus': self.bonus.value,
      'points': self.points,
      'cost': self.cost.to_dict(),
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'DevelopmentCard':
    cid = d.get('id')
    if not cid:
      raise ValueError("Card id is required")
    return cls(id=cid, level=CardLevel(int(d['level'])), bonus=Gem(d['bonus']),
               points=int(d.get('points', 0)), cost=TokenBank.from_dict(d.get('cost')))

  def __str__(self) -> str:  # pragma: no cover - tiny convenience
    points = f"[{self.points}]" if self.points > 0 else ""
    return f"<{self.id}>{points}{self.bonus.color_circle()}:{self.cost}"


@pydantic_dataclass(frozen=True)
class NobleTile:
  """A noble that visits a player once their bonuses meet `requirement`."""
  id: str
  points: int = 3
  requirement: TokenBank = Field(default_factory=TokenBank)

  @field_validator('requirement', mode='before')
  @classmethod
  def _wrap_requirement(cls, v):
    return _as_token_bank(v)

  def is_reachable(self, bonuses: TokenBank) -> bool:
    """Return True if `bonuses` meet every required colour threshold."""
    return all(bonuses.get(g) >= n for g, n in self.requirement)

  def to_dict(self) -> dict:
    return {
      'id': self.id,
      'points': self.points,
      'requirement': self.requirement.to_dict(),
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'NobleTile':
    return cls(id=d['id'], points=int(d.get('points', 3)),
               requirement=TokenBank.from_dict(d.get('requirement')))

  def __str__(self) -> str:  # pragma: no cover - tiny convenience
    return f"Noble<{self.id}>[{self.points}]:{self.requirement}"
