import csv
import random
from pathlib import Path

from pydantic.dataclasses import dataclass as pydantic_dataclass

from .typings import CardLevel, DevelopmentCard, Gem, NobleTile, TokenBank

ASSETS_DIR = Path(__file__).parent / "assets"

DEFAULT_PLAYERS = 2
# CSV column order after the level/bonus/points columns
CSV_COST_COLUMNS = (Gem.BLACK, Gem.BLUE, Gem.GREEN, Gem.RED, Gem.WHITE)


@pydantic_dataclass(frozen=True)
class GameConfig:
  """Rule constants for one game: bank sizes, hand and reserve limits,
  the winning score and the reasoning history length."""
  num_players: int = DEFAULT_PLAYERS
  coin_init: int = 4
  coin_gold_init: int = 5
  coin_max_count_per_player: int = 10
  coin_min_count_take2_in_bank: int = 4
  card_visible_count: int = 4
  card_max_count_reserved: int = 3
  winning_score: int = 15
  reasoning_history_size: int = 5

  take3_count: int = 3
  take2_count: int = 2

  def __post_init__(self):
    # the winner rule and resume format assume exactly two seats
    if self.num_players != 2:
      raise ValueError(f'only two-player games are supported, got {self.num_players}')

  @property
  def noble_count(self) -> int:
    return self.num_players + 1


@pydantic_dataclass(frozen=True)
class GameAssets:
  """The card catalog (by level, in deck order) and the noble list."""
  decks_by_level: dict[CardLevel, tuple[DevelopmentCard, ...]]
  nobles: tuple[NobleTile, ...]

  @classmethod
  def init(cls, cards: list[DevelopmentCard], nobles: list[NobleTile]) -> 'GameAssets':
    decks_by_level: dict[CardLevel, list[DevelopmentCard]] = {level: [] for level in CardLevel}
    for card in cards:
      decks_by_level[card.level].append(card)
    return cls(
      decks_by_level={level: tuple(deck) for level, deck in decks_by_level.items()},
      nobles=tuple(nobles),
    )

  @classmethod
  def load_default(cls, cards_path: str | Path | None = None, nobles_path: str | Path | None = None) -> 'GameAssets':
    """Load cards from the CSV catalog and nobles from the YAML list."""
    cards = load_cards(cards_path if cards_path is not None else ASSETS_DIR / "development_cards.csv")
    nobles = load_nobles(nobles_path if nobles_path is not None else ASSETS_DIR / "nobles.yaml")
    return cls.init(cards, nobles)

  def shuffle(self, seed: int | None = None) -> 'GameAssets':
    rng = random.Random(seed)
    shuffled_decks_by_level = {
      level: tuple(rng.sample(deck, len(deck)))
      for level, deck in self.decks_by_level.items()
    }
    shuffled_nobles = tuple(rng.sample(self.nobles, len(self.nobles)))
    return GameAssets(decks_by_level=shuffled_decks_by_level, nobles=shuffled_nobles)


def load_cards(path: str | Path) -> list[DevelopmentCard]:
  """Read development cards from a CSV file.

  Columns: level, bonus, points, then black/blue/green/red/white costs. Card
  ids are `L{level}_{row}` with `row` the 1-based data row.
  """
  cards: list[DevelopmentCard] = []
  with open(path, newline="", encoding="utf-8") as fh:
    reader = csv.DictReader(fh)
    for row_num, row in enumerate(reader, start=1):
      level = int(row["level"])
      cost = {g: int(row[g.value]) for g in CSV_COST_COLUMNS if int(row[g.value]) > 0}
      cards.append(DevelopmentCard(
        id=f"L{level}_{row_num}",
        level=CardLevel(level),
        bonus=Gem(row["bonus"].strip().lower()),
        points=int(row["points"]),
        cost=TokenBank(cost),
      ))
  return cards


def load_nobles(path: str | Path) -> list[NobleTile]:
  import yaml
  with open(path, 'r', encoding='utf8') as fh:
    j = yaml.safe_load(fh)
  return [NobleTile.from_dict(n) for n in j.get('nobles', [])]


GAME_ASSETS_DEFAULT = GameAssets.load_default()
