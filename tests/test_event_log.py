import json

import pytest

from gemarena.errors import ReconstructionError
from gemarena.events import (ActionRecorded, EventLog, GameEnded, GameStarted, Reasoning, Retry, TurnStarted,
                             parse_event, read_events)

from _common import make_state


def _events():
  state = make_state().to_dict()
  return [
    GameStarted(game_id="g1", player_models=["a/m1", "b/m2"], initial_state=state),
    TurnStarted(turn=1, player_index=0, game_state=state),
    Reasoning(player_index=0, reasoning="take some gems"),
    ActionRecorded(player_index=0, action={'type': 'purchase_card', 'card_id': 'c1'}, success=False),
    Retry(player_index=0, attempt=1, error="Invalid action: Insufficient tokens to purchase card c1"),
    ActionRecorded(player_index=0, action=None, success=False, forfeited=True),
    GameEnded(winner_index=None, winner_reason="It's a draw!", final_scores={0: 15, 1: 15}),
  ]


def test_one_json_object_per_line(tmp_path):
  with EventLog.create(tmp_path, "g1") as log:
    for e in _events():
      log.append(e)
  path = tmp_path / "g1.jsonl"
  lines = path.read_text(encoding="utf-8").splitlines()
  assert len(lines) == 7
  records = [json.loads(line) for line in lines]
  assert [r['event_type'] for r in records] == [
    "GAME_STARTED", "TURN_STARTED", "REASONING", "ACTION", "RETRY", "ACTION", "GAME_ENDED"]
  assert all('timestamp' in r for r in records)


def test_events_read_back_as_written(tmp_path):
  written = _events()
  with EventLog.create(tmp_path / "nested", "g1") as log:
    for e in written:
      log.append(e)
  events = read_events(tmp_path / "nested" / "g1.jsonl")
  assert [e.model_dump() for e in events] == [e.model_dump() for e in written]
  assert isinstance(events[3], ActionRecorded)
  assert events[3].parsed_action().card_id == 'c1'
  assert events[5].parsed_action() is None
  assert events[5].completed and not events[3].completed
  assert events[1].state == make_state()
  assert events[6].final_scores == {0: 15, 1: 15}


def test_existing_log_is_never_overwritten(tmp_path):
  (tmp_path / "g1.jsonl").write_text("keep me\n", encoding="utf-8")
  with pytest.raises(FileExistsError):
    EventLog.create(tmp_path, "g1")
  assert (tmp_path / "g1.jsonl").read_text(encoding="utf-8") == "keep me\n"


def test_append_after_close(tmp_path):
  log = EventLog.create(tmp_path, "g1")
  log.close()
  log.close()
  with pytest.raises(ValueError):
    log.append(Reasoning(player_index=0, reasoning="late"))


def test_torn_final_line_is_skipped(tmp_path):
  path = tmp_path / "g1.jsonl"
  with EventLog(path) as log:
    for e in _events()[:3]:
      log.append(e)
  with open(path, "a", encoding="utf-8") as f:
    f.write('{"event_type": "ACTION", "player_ind')
  events = read_events(path)
  assert len(events) == 3


def test_malformed_line_in_the_middle(tmp_path):
  path = tmp_path / "g1.jsonl"
  good = [e.model_dump_json() for e in _events()[:3]]
  path.write_text("\n".join([good[0], "not json", good[1], good[2]]) + "\n", encoding="utf-8")
  with pytest.raises(ReconstructionError, match="record 2"):
    read_events(path)


def test_unknown_event_type_is_rejected():
  with pytest.raises(ValueError):
    parse_event('{"event_type": "CHAT", "timestamp": "2025-01-01T00:00:00Z"}')


def test_missing_log(tmp_path):
  with pytest.raises(ReconstructionError, match="Cannot read"):
    read_events(tmp_path / "absent.jsonl")


def test_action_error_round_trips(tmp_path):
  with EventLog.create(tmp_path, "g1") as log:
    log.append(ActionRecorded(player_index=1, action=None, success=False, forfeited=True, error="Network timeout"))
  (event,) = read_events(tmp_path / "g1.jsonl")
  assert event.error == "Network timeout"
  assert parse_event('{"event_type": "ACTION", "player_index": 0, "action": null, "success": true}').error is None
