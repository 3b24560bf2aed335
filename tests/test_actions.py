import json

import pytest

from gemarena.actions import PurchaseCard, ReserveCard, TakeTokens, deserialize_action, serialize_action
from gemarena.typings import ActionType, CardLevel, Gem

from _common import tokens


def test_create_take_tokens_counts_gems():
  a = TakeTokens.create(Gem.RED, Gem.RED, ret_map={Gem.BLUE: 1})
  assert a.type == ActionType.TAKE_TOKENS
  assert a.tokens == tokens(red=2)
  assert a.returns == tokens(blue=1)


def test_serialized_payloads():
  assert serialize_action(TakeTokens.create(Gem.WHITE, Gem.BLUE, Gem.BLACK)) == {
    'type': 'take_tokens',
    'tokens': {'white': 1, 'blue': 1, 'black': 1},
    'returns': {},
  }
  assert serialize_action(ReserveCard(deck_level=CardLevel.LEVEL_2, returns=tokens(gold=1))) == {
    'type': 'reserve_card',
    'card_id': None,
    'deck_level': 'LEVEL_2',
    'returns': {'gold': 1},
  }
  assert serialize_action(PurchaseCard('L1_7')) == {'type': 'purchase_card', 'card_id': 'L1_7'}


@pytest.mark.parametrize("action", [
  TakeTokens.create(Gem.GREEN, Gem.GREEN, ret_map={Gem.RED: 1}),
  ReserveCard(card_id='L3_88'),
  ReserveCard(deck_level=CardLevel.LEVEL_3, returns=tokens(white=1)),
  PurchaseCard('L2_50'),
])
def test_payload_survives_json(action):
  payload = json.loads(json.dumps(serialize_action(action)))
  assert deserialize_action(payload) == action


def test_deck_level_accepts_int():
  assert ReserveCard(deck_level=2).deck_level is CardLevel.LEVEL_2


def test_unknown_action_type():
  with pytest.raises(ValueError):
    deserialize_action({'type': 'pass_turn'})
  with pytest.raises(ValueError):
    deserialize_action({})


def test_action_str():
  assert str(PurchaseCard('x')) == "Purchase(<x>)"
  assert str(ReserveCard(deck_level=CardLevel.LEVEL_1)) == "Reserve(deck LEVEL_1)"
