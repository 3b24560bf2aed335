import pytest

from gemarena.consts import ASSETS_DIR, GAME_ASSETS_DEFAULT, GameConfig, load_cards
from gemarena.engine import RulesEngine
from gemarena.typings import CardLevel, DevelopmentCard, Gem, NobleTile, TokenBank


def test_load_assets_default_config():
  assets = GAME_ASSETS_DEFAULT
  cards = [c for deck in assets.decks_by_level.values() for c in deck]
  assert all(isinstance(c, DevelopmentCard) for c in cards)
  assert all(isinstance(n, NobleTile) for n in assets.nobles)
  assert len(cards) == 90
  assert len(assets.nobles) == 10
  assert {level: len(deck) for level, deck in assets.decks_by_level.items()} == {
    CardLevel.LEVEL_1: 40, CardLevel.LEVEL_2: 30, CardLevel.LEVEL_3: 20}
  assert len({c.id for c in cards}) == 90
  assert all(n.points == 3 for n in assets.nobles)
  assert [n.id for n in assets.nobles] == [f"N{i}" for i in range(1, 11)]


def test_card_ids_follow_csv_rows():
  cards = load_cards(ASSETS_DIR / "development_cards.csv")
  assert cards[0].id == "L1_1"
  assert cards[0].bonus == Gem.BLUE
  assert cards[0].cost == TokenBank({Gem.WHITE: 1, Gem.GREEN: 1, Gem.RED: 1, Gem.BLACK: 1})
  assert cards[40].id == "L2_41"
  assert cards[-1].id == "L3_90"
  assert all(Gem.GOLD not in c.cost.as_dict() for c in cards)


def test_shuffle_is_deterministic_per_seed():
  a = GAME_ASSETS_DEFAULT.shuffle(7)
  b = GAME_ASSETS_DEFAULT.shuffle(7)
  c = GAME_ASSETS_DEFAULT.shuffle(8)
  assert a == b
  assert a != c
  # the source is not touched
  assert GAME_ASSETS_DEFAULT.decks_by_level[CardLevel.LEVEL_1][0].id == "L1_1"


def test_new_game_setup():
  engine = RulesEngine()
  state = engine.new_game(seed=3)
  board = state.board
  assert board.bank == TokenBank({g: 4 for g in Gem.colors()}).plus({Gem.GOLD: 5})
  assert all(len(row) == 4 for row in board.face_up.values())
  assert {level: len(deck) for level, deck in board.decks.items()} == {
    CardLevel.LEVEL_1: 36, CardLevel.LEVEL_2: 26, CardLevel.LEVEL_3: 16}
  assert len(board.nobles) == 3
  assert len(state.players) == 2
  assert all(p.tokens.total() == 0 and p.score == 0 for p in state.players)
  assert state.current_player == 0
  assert state.turn == 1
  assert not state.game_over and not state.end_triggered


def test_new_game_deals_from_top_of_shuffled_decks():
  engine = RulesEngine()
  shuffled = GAME_ASSETS_DEFAULT.shuffle(11)
  state = engine.new_game(seed=11)
  for level in CardLevel:
    assert state.board.face_up[level] == shuffled.decks_by_level[level][:4]
    assert state.board.decks[level] == shuffled.decks_by_level[level][4:]
  assert state.board.nobles == shuffled.nobles[:3]


def test_game_config_only_two_players():
  assert GameConfig().noble_count == 3
  with pytest.raises(ValueError):
    GameConfig(num_players=3)
