from dataclasses import dataclass, field, replace
from collections.abc import Iterable, Mapping
from typing import Any

from .typings import CardLevel, DevelopmentCard, NobleTile, TokenBank, _as_token_bank
from .utils import _push_bounded, _remove_at, _replace_tuple


def _level_map(v: Mapping[CardLevel, Iterable[DevelopmentCard]] | None) -> dict[CardLevel, tuple[DevelopmentCard, ...]]:
  """Copy a level -> cards mapping into a fresh dict of tuples covering every level."""
  v = v or {}
  return {level: tuple(v.get(level, ())) for level in CardLevel}


def _level_map_to_dict(v: Mapping[CardLevel, tuple[DevelopmentCard, ...]]) -> dict[str, list[dict]]:
  return {str(level): [c.to_dict() for c in cards] for level, cards in v.items()}


def _level_map_from_dict(d: Mapping[str, list[dict]] | None) -> dict[CardLevel, tuple[DevelopmentCard, ...]]:
  return {CardLevel[k]: tuple(DevelopmentCard.from_dict(c) for c in cards) for k, cards in (d or {}).items()}


@dataclass(frozen=True)
class PlayerState:
  """Per-player snapshot.

  Sequences are stored as tuples and token counts as `TokenBank` so a
  snapshot can be shared between states without copying. `bonuses` counts
  the bonus colour of every purchased card.
  """
  seat_id: int
  tokens: TokenBank = field(default_factory=TokenBank)
  purchased_cards: tuple[DevelopmentCard, ...] = ()
  reserved_cards: tuple[DevelopmentCard, ...] = ()
  visited_nobles: tuple[NobleTile, ...] = ()
  score: int = 0
  bonuses: TokenBank = field(default_factory=TokenBank)
  reasoning_history: tuple[str, ...] = ()

  def __post_init__(self):
    object.__setattr__(self, 'tokens', _as_token_bank(self.tokens))
    object.__setattr__(self, 'bonuses', _as_token_bank(self.bonuses))
    object.__setattr__(self, 'purchased_cards', tuple(self.purchased_cards))
    object.__setattr__(self, 'reserved_cards', tuple(self.reserved_cards))
    object.__setattr__(self, 'visited_nobles', tuple(self.visited_nobles))
    object.__setattr__(self, 'reasoning_history', tuple(self.reasoning_history))

  def find_reserved(self, card_id: str) -> int | None:
    for i, c in enumerate(self.reserved_cards):
      if c.id == card_id:
        return i
    return None

  def with_reasoning(self, reasoning: str, capacity: int) -> 'PlayerState':
    """Return a copy with `reasoning` appended, evicting the oldest entries
    beyond `capacity`."""
    return replace(self, reasoning_history=_push_bounded(self.reasoning_history, reasoning, capacity))

  def to_dict(self, include_history: bool = True) -> dict:
    d: dict[str, Any] = {
      'seat_id': self.seat_id,
      'tokens': self.tokens.to_dict(),
      'purchased_cards': [c.to_dict() for c in self.purchased_cards],
      'reserved_cards': [c.to_dict() for c in self.reserved_cards],
      'visited_nobles': [n.to_dict() for n in self.visited_nobles],
      'score': self.score,
      'bonuses': self.bonuses.to_dict(),
    }
    if include_history:
      d['reasoning_history'] = list(self.reasoning_history)
    return d

  @classmethod
  def from_dict(cls, d: dict) -> 'PlayerState':
    return cls(
      seat_id=int(d['seat_id']),
      tokens=TokenBank.from_dict(d.get('tokens')),
      purchased_cards=tuple(DevelopmentCard.from_dict(c) for c in d.get('purchased_cards', ())),
      reserved_cards=tuple(DevelopmentCard.from_dict(c) for c in d.get('reserved_cards', ())),
      visited_nobles=tuple(NobleTile.from_dict(n) for n in d.get('visited_nobles', ())),
      score=int(d.get('score', 0)),
      bonuses=TokenBank.from_dict(d.get('bonuses')),
      reasoning_history=tuple(d.get('reasoning_history', ())),
    )


@dataclass(frozen=True)
class Board:
  """Shared table: token bank, face-up rows, remaining decks and nobles.

  Decks are ordered with the top card first. Every method returns a new
  Board; the mappings held here are never modified after construction.
  """
  bank: TokenBank = field(default_factory=TokenBank)
  face_up: Mapping[CardLevel, tuple[DevelopmentCard, ...]] = field(default_factory=dict)
  decks: Mapping[CardLevel, tuple[DevelopmentCard, ...]] = field(default_factory=dict)
  nobles: tuple[NobleTile, ...] = ()

  def __post_init__(self):
    object.__setattr__(self, 'bank', _as_token_bank(self.bank))
    object.__setattr__(self, 'face_up', _level_map(self.face_up))
    object.__setattr__(self, 'decks', _level_map(self.decks))
    object.__setattr__(self, 'nobles', tuple(self.nobles))

  def find_face_up(self, card_id: str) -> tuple[CardLevel, int] | None:
    """Return (level, position) of a face-up card, or None."""
    for level, row in self.face_up.items():
      for i, c in enumerate(row):
        if c.id == card_id:
          return level, i
    return None

  def take_face_up(self, level: CardLevel, index: int) -> tuple[DevelopmentCard, 'Board']:
    """Remove a face-up card and refill its row from the top of the deck."""
    row = self.face_up[level]
    card = row[index]
    new_row = _remove_at(row, index)
    deck = self.decks[level]
    decks = dict(self.decks)
    if deck:
      new_row = new_row + (deck[0],)
      decks[level] = deck[1:]
    face_up = dict(self.face_up)
    face_up[level] = new_row
    return card, replace(self, face_up=face_up, decks=decks)

  def draw(self, level: CardLevel) -> tuple[DevelopmentCard, 'Board']:
    """Pop the top card of a deck. Raises IndexError on an empty deck."""
    deck = self.decks[level]
    if not deck:
      raise IndexError(f"deck {level!s} is empty")
    decks = dict(self.decks)
    decks[level] = deck[1:]
    return deck[0], replace(self, decks=decks)

  def to_dict(self) -> dict:
    return {
      'bank': self.bank.to_dict(),
      'face_up': _level_map_to_dict(self.face_up),
      'decks': _level_map_to_dict(self.decks),
      'nobles': [n.to_dict() for n in self.nobles],
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'Board':
    return cls(
      bank=TokenBank.from_dict(d.get('bank')),
      face_up=_level_map_from_dict(d.get('face_up')),
      decks=_level_map_from_dict(d.get('decks')),
      nobles=tuple(NobleTile.from_dict(n) for n in d.get('nobles', ())),
    )


@dataclass(frozen=True)
class GameState:
  """Immutable aggregate of the whole game.

  `end_triggered` is set once a player reaches the winning score and never
  cleared; `game_over` only follows it at the end of that round.
  """
  board: Board
  players: tuple[PlayerState, ...]
  current_player: int = 0
  turn: int = 1
  game_over: bool = False
  winner_reason: str | None = None
  end_triggered: bool = False

  def __post_init__(self):
    object.__setattr__(self, 'players', tuple(self.players))
    if not self.players:
      raise ValueError("GameState must have at least one player")
    if not (0 <= self.current_player < len(self.players)):
      raise ValueError(f"current_player out of range: {self.current_player}")

  @property
  def num_players(self) -> int:
    return len(self.players)

  @property
  def player(self) -> PlayerState:
    """The player whose turn it is."""
    return self.players[self.current_player]

  def with_player(self, player: PlayerState) -> 'GameState':
    """Return a copy with the player at `player.seat_id` replaced."""
    return replace(self, players=_replace_tuple(self.players, player.seat_id, player))

  def total_tokens(self) -> TokenBank:
    """Tokens in the bank plus every player's holdings."""
    total = self.board.bank
    for p in self.players:
      total = total.plus(p.tokens)
    return total

  def to_dict(self) -> dict:
    return {
      'board': self.board.to_dict(),
      'players': [p.to_dict() for p in self.players],
      'current_player': self.current_player,
      'turn': self.turn,
      'game_over': self.game_over,
      'winner_reason': self.winner_reason,
      'end_triggered': self.end_triggered,
    }

  @classmethod
  def from_dict(cls, d: dict) -> 'GameState':
    return cls(
      board=Board.from_dict(d['board']),
      players=tuple(PlayerState.from_dict(p) for p in d['players']),
      current_player=int(d.get('current_player', 0)),
      turn=int(d.get('turn', 1)),
      game_over=bool(d.get('game_over', False)),
      winner_reason=d.get('winner_reason'),
      end_triggered=bool(d.get('end_triggered', False)),
    )

  def public_view(self) -> dict:
    """Return what the acting player is allowed to see.

    Decks are reduced to their sizes and only the acting player's own
    reasoning history is included.
    """
    board = self.board.to_dict()
    del board['decks']
    board['deck_sizes'] = {str(level): len(deck) for level, deck in self.board.decks.items()}
    return {
      'board': board,
      'players': [p.to_dict(include_history=(p.seat_id == self.current_player)) for p in self.players],
      'current_player': self.current_player,
      'turn': self.turn,
      'game_over': self.game_over,
    }


__all__ = ["PlayerState", "Board", "GameState"]
