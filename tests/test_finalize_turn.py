import pytest

from gemarena.actions import TakeTokens
from gemarena.engine import DRAW_REASON, RulesEngine
from gemarena.typings import Gem

from _common import card, make_state, noble, player, tokens

engine = RulesEngine()


def test_turn_counter_advances_after_last_seat():
  state = make_state()
  state = engine.finalize_turn(state)
  assert (state.current_player, state.turn) == (1, 1)
  state = engine.finalize_turn(state)
  assert (state.current_player, state.turn) == (0, 2)


def test_only_first_eligible_noble_visits():
  nobles = [noble('n1', red=1), noble('n2', red=1), noble('n3', blue=5)]
  state = make_state(players=(player(0, bonuses=tokens(red=1)), player(1)), nobles=nobles)
  after = engine.finalize_turn(state)
  assert [n.id for n in after.players[0].visited_nobles] == ['n1']
  assert after.players[0].score == 3
  assert [n.id for n in after.board.nobles] == ['n2', 'n3']


def test_noble_order_follows_board_not_requirement():
  nobles = [noble('n1', blue=9), noble('n2', red=2, blue=1), noble('n3', red=1)]
  state = make_state(players=(player(0, bonuses=tokens(red=2, blue=1)), player(1)), nobles=nobles)
  after = engine.finalize_turn(state)
  assert [n.id for n in after.players[0].visited_nobles] == ['n2']


def test_noble_only_checks_acting_player():
  state = make_state(players=(player(0), player(1, bonuses=tokens(red=3))), nobles=[noble('n1', red=3)])
  after = engine.finalize_turn(state)
  assert after.players[1].visited_nobles == ()
  assert len(after.board.nobles) == 1


def test_end_waits_for_round_boundary():
  state = make_state(players=(player(0, score=15), player(1, score=3)))
  after = engine.finalize_turn(state)
  assert after.end_triggered
  assert not after.game_over
  assert after.current_player == 1

  after = engine.apply(after, TakeTokens.create(Gem.RED, Gem.BLUE, Gem.GREEN))
  assert after.game_over
  assert after.current_player == 0
  assert after.winner_reason == "Player 0 won on points."


def test_threshold_reached_by_last_seat_ends_immediately():
  state = make_state(players=(player(0, score=4), player(1, score=16)), current_player=1)
  after = engine.finalize_turn(state)
  assert after.game_over
  assert after.turn == 2
  assert after.winner_reason == "Player 1 won on points."


def test_end_trigger_is_sticky():
  # the triggering score is no longer present, the flag still ends the round
  state = make_state(current_player=1, end_triggered=True)
  after = engine.finalize_turn(state)
  assert after.end_triggered and after.game_over


def test_no_end_below_threshold():
  state = make_state(players=(player(0, score=14), player(1, score=14)), current_player=1)
  after = engine.finalize_turn(state)
  assert not after.end_triggered and not after.game_over


def test_noble_points_can_trigger_the_end():
  state = make_state(players=(player(0, score=12, bonuses=tokens(red=3)), player(1)),
                     nobles=[noble('n1', red=3)])
  after = engine.finalize_turn(state)
  assert after.players[0].score == 15
  assert after.end_triggered


def _cards(n, prefix):
  return [card(f'{prefix}{i}') for i in range(n)]


@pytest.mark.parametrize("p0, p1, expected", [
  ((16, 3), (15, 2), (0, "Player 0 won on points.")),
  ((15, 9), (17, 9), (1, "Player 1 won on points.")),
  ((15, 4), (15, 5), (0, "Player 0 won on tie-breaker (fewer cards).")),
  ((15, 6), (15, 5), (1, "Player 1 won on tie-breaker (fewer cards).")),
  ((15, 5), (15, 5), (None, DRAW_REASON)),
])
def test_decide_winner(p0, p1, expected):
  state = make_state(players=(
    player(0, score=p0[0], purchased=_cards(p0[1], 'a')),
    player(1, score=p1[0], purchased=_cards(p1[1], 'b')),
  ))
  assert engine.decide_winner(state) == expected


def test_draw_is_recorded_on_game_over():
  state = make_state(players=(player(0, score=15), player(1, score=15)), current_player=1)
  after = engine.finalize_turn(state)
  assert after.game_over
  assert after.winner_reason == "It's a draw!"


def test_forfeit_changes_nothing_but_rotation():
  state = make_state(players=(player(0, held=tokens(red=2), score=5), player(1)))
  after = engine.forfeit_turn(state)
  assert after.players == state.players
  assert after.board == state.board
  assert (after.current_player, after.turn) == (1, 1)
  after = engine.forfeit_turn(after)
  assert (after.current_player, after.turn) == (0, 2)


def test_forfeit_by_last_seat_completes_a_triggered_round():
  state = make_state(players=(player(0, score=15), player(1)), current_player=1, end_triggered=True)
  after = engine.forfeit_turn(state)
  assert after.game_over
  assert after.winner_reason == "Player 0 won on points."


def test_forfeit_does_not_trigger_the_end_itself():
  # scores are only checked after a move
  state = make_state(players=(player(0), player(1, score=20)), current_player=1)
  after = engine.forfeit_turn(state)
  assert not after.end_triggered and not after.game_over
