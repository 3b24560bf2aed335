"""Small builders shared by the tests."""
from collections.abc import Iterable

from gemarena.state import Board, GameState, PlayerState
from gemarena.typings import CardLevel, DevelopmentCard, Gem, NobleTile, TokenBank

FULL_BANK = {Gem.WHITE: 4, Gem.BLUE: 4, Gem.GREEN: 4, Gem.RED: 4, Gem.BLACK: 4, Gem.GOLD: 5}


def tokens(**counts: int) -> TokenBank:
  """tokens(red=2, gold=1) -> TokenBank"""
  return TokenBank({Gem(g): n for g, n in counts.items()})


def card(cid: str, level: int = 1, bonus: Gem = Gem.RED, points: int = 0, **cost: int) -> DevelopmentCard:
  return DevelopmentCard(id=cid, level=CardLevel(level), bonus=bonus, points=points, cost=tokens(**cost))


def noble(nid: str, points: int = 3, **requirement: int) -> NobleTile:
  return NobleTile(id=nid, points=points, requirement=tokens(**requirement))


def player(seat_id: int, *, held: TokenBank | None = None, bonuses: TokenBank | None = None, score: int = 0,
           reserved: Iterable[DevelopmentCard] = (), purchased: Iterable[DevelopmentCard] = (),
           history: Iterable[str] = ()) -> PlayerState:
  return PlayerState(seat_id=seat_id, tokens=held or TokenBank(), bonuses=bonuses or TokenBank(), score=score,
                     reserved_cards=tuple(reserved), purchased_cards=tuple(purchased),
                     reasoning_history=tuple(history))


def make_state(*, players: Iterable[PlayerState] | None = None, bank: dict | TokenBank | None = None,
               face_up: dict | None = None, decks: dict | None = None, nobles: Iterable[NobleTile] = (),
               current_player: int = 0, turn: int = 1, end_triggered: bool = False) -> GameState:
  """A two-player state with a full bank and, by default, one level-1 card
  face up (`c1`, costs 1 red) with `d1` waiting in the deck."""
  if face_up is None:
    face_up = {CardLevel.LEVEL_1: (card('c1', red=1),)}
  if decks is None:
    decks = {CardLevel.LEVEL_1: (card('d1', bonus=Gem.BLUE, white=1),)}
  board = Board(bank=TokenBank(FULL_BANK if bank is None else bank), face_up=face_up, decks=decks,
                nobles=tuple(nobles))
  if players is None:
    players = (player(0), player(1))
  return GameState(board=board, players=tuple(players), current_player=current_player, turn=turn,
                   end_triggered=end_triggered)
