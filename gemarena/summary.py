"""Summarize a directory of game logs: wins per seat and model, draws,
unfinished games.

  gemarena-summary logs/
"""
import argparse
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from tqdm import tqdm

from .errors import ReconstructionError
from .events import LOG_SUFFIX, GameEnded, GameStarted, PathLike, read_events


def summarize(log_dir: PathLike, progress: bool = True) -> dict[str, Counter]:
  wins: Counter = Counter()
  models: Counter = Counter()
  outcomes: Counter = Counter()
  paths = sorted(Path(log_dir).glob(f"*{LOG_SUFFIX}"))
  for path in tqdm(paths, desc="Reading logs", disable=not progress):
    try:
      events = read_events(path)
    except ReconstructionError as e:
      print(f"skip {path.name}: {e}")
      outcomes["unreadable"] += 1
      continue
    started = next((e for e in events if isinstance(e, GameStarted)), None)
    ended = next((e for e in events if isinstance(e, GameEnded)), None)
    if ended is None:
      outcomes["unfinished"] += 1
      continue
    if ended.winner_index is None:
      outcomes["draw"] += 1
      continue
    outcomes["decided"] += 1
    wins[ended.winner_index] += 1
    if started is not None:
      models[started.player_models[ended.winner_index]] += 1
  return {"wins": wins, "models": models, "outcomes": outcomes}


def main(argv: Sequence[str] | None = None) -> int:
  parser = argparse.ArgumentParser(prog="gemarena-summary", description="Summarize a directory of game logs.")
  parser.add_argument("log_dir", nargs="?", default="logs")
  args = parser.parse_args(argv)

  summary = summarize(args.log_dir)
  print(f"Games: {dict(summary['outcomes'])}")
  for seat, n in sorted(summary["wins"].items()):
    print(f"  seat {seat}: {n} wins")
  for model, n in summary["models"].most_common():
    print(f"  {model}: {n} wins")
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
