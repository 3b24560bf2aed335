"""Rules engine: game setup, move validation, state transitions and turn
progression.

`RulesEngine` is stateless apart from its `GameConfig`. Every method takes a
`GameState` and returns a new one; nothing here mutates its input.

- `new_game(...)` builds the starting state from shuffled assets.
- `validate(state, action)` raises `RuleViolation` for an illegal move.
- `apply(state, action)` performs a validated move and finalizes the turn.
- `forfeit_turn(state)` passes the turn without applying anything.
- `legal_actions(state)` enumerates moves that pass `validate`.
"""
import itertools
from dataclasses import replace

from .actions import Action, PurchaseCard, ReserveCard, TakeTokens
from .consts import GAME_ASSETS_DEFAULT, GameAssets, GameConfig
from .errors import RuleViolation
from .state import Board, GameState, PlayerState
from .typings import CardLevel, DevelopmentCard, Gem, TokenBank
from .utils import _remove_at

DRAW_REASON = "It's a draw!"


def compute_payment(player: PlayerState, card: DevelopmentCard) -> tuple[TokenBank, int]:
  """Return (coloured tokens spent, gold deficit) for `player` buying `card`.

  Per colour, bonuses discount the cost first; matching tokens cover what
  they can and the rest is a deficit to be paid in gold.
  """
  paid: dict[Gem, int] = {}
  deficit = 0
  for gem, cost in card.cost:
    payable = max(0, cost - player.bonuses.get(gem))
    used = min(payable, player.tokens.get(gem))
    paid[gem] = used
    deficit += payable - used
  return TokenBank(paid), deficit


def _minimal_returns(holding: TokenBank, excess: int) -> TokenBank:
  """Pick `excess` tokens to give back, always from the largest pile and
  keeping gold for last."""
  ret: dict[Gem, int] = {}
  for _ in range(excess):
    left = [(g, n - ret.get(g, 0)) for g, n in holding if n - ret.get(g, 0) > 0]
    if not left:
      break
    gem, _ = max(left, key=lambda kv: (kv[0] != Gem.GOLD, kv[1]))
    ret[gem] = ret.get(gem, 0) + 1
  return TokenBank(ret)


class RulesEngine:
  """Validates and applies actions for a two-player game."""

  config: GameConfig

  def __init__(self, config: GameConfig | None = None) -> None:
    self.config = config or GameConfig()

  def new_game(self, assets: GameAssets | None = None, seed: int | None = None) -> GameState:
    """Shuffle `assets` (the bundled catalog by default) and deal the table.

    Four face-up cards per level come off the top of each deck and the first
    `num_players + 1` nobles of the shuffled list are laid out.
    """
    cfg = self.config
    assets = (assets or GAME_ASSETS_DEFAULT).shuffle(seed)
    face_up: dict[CardLevel, tuple[DevelopmentCard, ...]] = {}
    decks: dict[CardLevel, tuple[DevelopmentCard, ...]] = {}
    for level, deck in assets.decks_by_level.items():
      face_up[level] = deck[:cfg.card_visible_count]
      decks[level] = deck[cfg.card_visible_count:]

    bank = {g: cfg.coin_init for g in Gem.colors()}
    bank[Gem.GOLD] = cfg.coin_gold_init
    board = Board(bank=TokenBank(bank), face_up=face_up, decks=decks,
                  nobles=assets.nobles[:cfg.noble_count])
    players = tuple(PlayerState(seat_id=i) for i in range(cfg.num_players))
    return GameState(board=board, players=players, current_player=0, turn=1)

  # Validation

  def validate(self, state: GameState, action: Action) -> None:
    """Raise `RuleViolation` if `action` is illegal for the acting player."""
    if state.game_over:
      raise RuleViolation("Game is already over.")
    match action:
      case TakeTokens():
        self._validate_take_tokens(state, action)
      case ReserveCard():
        self._validate_reserve_card(state, action)
      case PurchaseCard():
        self._validate_purchase_card(state, action)
      case _:
        raise RuleViolation(f"Unknown action type: {type(action).__name__}")

  def _validate_take_tokens(self, state: GameState, action: TakeTokens) -> None:
    cfg = self.config
    player = state.player
    bank = state.board.bank
    tokens = action.tokens
    if not tokens:
      raise RuleViolation("Must select tokens to take.")
    if tokens.get(Gem.GOLD) > 0:
      raise RuleViolation("Cannot take GOLD tokens directly.")

    taking = tokens.total()
    if taking == cfg.take3_count:
      if tokens.distinct() != cfg.take3_count:
        raise RuleViolation("For taking 3 tokens, they must be of 3 different colors.")
      for gem, _ in tokens:
        if bank.get(gem) < 1:
          raise RuleViolation(f"Not enough {gem.name} tokens available.")
    elif taking == cfg.take2_count:
      if tokens.distinct() != 1:
        raise RuleViolation("For taking 2 tokens, they must be of the same color.")
      (gem, _), = tokens
      if bank.get(gem) < cfg.coin_min_count_take2_in_bank:
        raise RuleViolation(
          f"Cannot take 2 {gem.name} tokens: only {bank.get(gem)} available "
          f"(need {cfg.coin_min_count_take2_in_bank}).")
    else:
      raise RuleViolation("Invalid token count. Must take 3 different or 2 matching tokens.")

    current = player.tokens.total()
    returning = action.returns.total()
    if current + taking - returning > cfg.coin_max_count_per_player:
      raise RuleViolation(
        f"Cannot have more than {cfg.coin_max_count_per_player} tokens at end of turn. "
        f"Current: {current}, Taking: {taking}, Returning: {returning}")

    for gem, n in action.returns:
      have = player.tokens.get(gem) + tokens.get(gem)
      if have < n:
        raise RuleViolation(
          f"Cannot return {n} {gem.name} tokens: player only has {have} available (including taken).")

  def _validate_reserve_card(self, state: GameState, action: ReserveCard) -> None:
    cfg = self.config
    player = state.player
    board = state.board
    if len(player.reserved_cards) >= cfg.card_max_count_reserved:
      raise RuleViolation(f"Cannot reserve more than {cfg.card_max_count_reserved} cards.")

    if action.card_id is not None:
      if board.find_face_up(action.card_id) is None:
        raise RuleViolation(f"Card with ID {action.card_id} not found on board.")
    elif action.deck_level is not None:
      if not board.decks.get(action.deck_level):
        raise RuleViolation(f"Deck {action.deck_level!s} is empty.")
    else:
      raise RuleViolation("Must specify either card_id or deck_level to reserve.")

    gold_gained = 1 if board.bank.get(Gem.GOLD) > 0 else 0
    current = player.tokens.total()
    returning = action.returns.total()
    if current + gold_gained - returning > cfg.coin_max_count_per_player:
      raise RuleViolation(
        f"Cannot have more than {cfg.coin_max_count_per_player} tokens at end of turn. "
        f"Current: {current}, Gaining Gold: {gold_gained}, Returning: {returning}")

    for gem, n in action.returns:
      have = player.tokens.get(gem) + (gold_gained if gem == Gem.GOLD else 0)
      if have < n:
        raise RuleViolation(
          f"Cannot return {n} {gem.name} tokens: player only has {have} available.")

  def _validate_purchase_card(self, state: GameState, action: PurchaseCard) -> None:
    player = state.player
    card = self._find_card(state, action.card_id)
    if card is None:
      raise RuleViolation(f"Card {action.card_id} not found on board or in reserved hand.")
    _, deficit = compute_payment(player, card)
    if player.tokens.get(Gem.GOLD) < deficit:
      raise RuleViolation(f"Insufficient tokens to purchase card {action.card_id}")

  def _find_card(self, state: GameState, card_id: str) -> DevelopmentCard | None:
    loc = state.board.find_face_up(card_id)
    if loc is not None:
      level, i = loc
      return state.board.face_up[level][i]
    i = state.player.find_reserved(card_id)
    if i is not None:
      return state.player.reserved_cards[i]
    return None

  # Transitions

  def apply(self, state: GameState, action: Action) -> GameState:
    """Apply a validated action for the acting player and finalize the turn."""
    match action:
      case TakeTokens():
        state = self._apply_take_tokens(state, action)
      case ReserveCard():
        state = self._apply_reserve_card(state, action)
      case PurchaseCard():
        state = self._apply_purchase_card(state, action)
      case _:
        raise RuleViolation(f"Unknown action type: {type(action).__name__}")
    return self.finalize_turn(state)

  def _apply_take_tokens(self, state: GameState, action: TakeTokens) -> GameState:
    player = state.player
    bank = state.board.bank.minus(action.tokens).plus(action.returns)
    tokens = player.tokens.plus(action.tokens).minus(action.returns)
    state = state.with_player(replace(player, tokens=tokens))
    return replace(state, board=replace(state.board, bank=bank))

  def _apply_reserve_card(self, state: GameState, action: ReserveCard) -> GameState:
    player = state.player
    board = state.board
    if action.card_id is not None:
      loc = board.find_face_up(action.card_id)
      if loc is None:
        raise RuleViolation(f"Card with ID {action.card_id} not found on board.")
      card, board = board.take_face_up(*loc)
    elif action.deck_level is not None:
      card, board = board.draw(action.deck_level)
    else:
      raise RuleViolation("Must specify either card_id or deck_level to reserve.")

    bank = board.bank
    tokens = player.tokens
    if bank.get(Gem.GOLD) > 0:
      bank = bank.minus({Gem.GOLD: 1})
      tokens = tokens.plus({Gem.GOLD: 1})
    bank = bank.plus(action.returns)
    tokens = tokens.minus(action.returns)

    player = replace(player, tokens=tokens, reserved_cards=player.reserved_cards + (card,))
    return replace(state.with_player(player), board=replace(board, bank=bank))

  def _apply_purchase_card(self, state: GameState, action: PurchaseCard) -> GameState:
    player = state.player
    board = state.board
    reserved = player.reserved_cards
    loc = board.find_face_up(action.card_id)
    if loc is not None:
      card, board = board.take_face_up(*loc)
    else:
      i = player.find_reserved(action.card_id)
      if i is None:
        raise RuleViolation(f"Card {action.card_id} not found on board or in reserved hand.")
      card = reserved[i]
      reserved = _remove_at(reserved, i)

    paid, deficit = compute_payment(player, card)
    if deficit > 0:
      paid = paid.plus({Gem.GOLD: deficit})

    player = replace(
      player,
      tokens=player.tokens.minus(paid),
      purchased_cards=player.purchased_cards + (card,),
      reserved_cards=reserved,
      score=player.score + card.points,
      bonuses=player.bonuses.plus({card.bonus: 1}),
    )
    board = replace(board, bank=board.bank.plus(paid))
    return replace(state.with_player(player), board=board)

  # Turn progression

  def finalize_turn(self, state: GameState) -> GameState:
    """Grant at most one noble, update the end trigger and rotate.

    Only the first reachable noble in board order visits, even when several
    are eligible at once.
    """
    player = state.player
    board = state.board
    for i, noble in enumerate(board.nobles):
      if noble.is_reachable(player.bonuses):
        player = replace(player, visited_nobles=player.visited_nobles + (noble,),
                         score=player.score + noble.points)
        board = replace(board, nobles=_remove_at(board.nobles, i))
        break
    state = replace(state.with_player(player), board=board)

    end_triggered = state.end_triggered or any(
      p.score >= self.config.winning_score for p in state.players)
    return self._rotate(state, end_triggered)

  def forfeit_turn(self, state: GameState) -> GameState:
    """Pass the turn: rotate exactly as after a move, changing nothing else."""
    return self._rotate(state, state.end_triggered)

  def _rotate(self, state: GameState, end_triggered: bool) -> GameState:
    next_player = (state.current_player + 1) % state.num_players
    turn = state.turn + 1 if next_player == 0 else state.turn
    # the round in which the threshold was reached is always played out
    game_over = end_triggered and next_player == 0
    state = replace(state, current_player=next_player, turn=turn,
                    end_triggered=end_triggered, game_over=game_over)
    if game_over:
      _, reason = self.decide_winner(state)
      state = replace(state, winner_reason=reason)
    return state

  def decide_winner(self, state: GameState) -> tuple[int | None, str]:
    """Return (winner index or None on a draw, explanation).

    Higher score wins; equal scores go to the player with fewer purchased
    cards; otherwise it is a draw. Only defined for two players.
    """
    if state.num_players != 2:
      raise ValueError(f"winner is only defined for two players, got {state.num_players}")
    p0, p1 = state.players
    if p0.score != p1.score:
      winner = 0 if p0.score > p1.score else 1
      return winner, f"Player {winner} won on points."
    n0, n1 = len(p0.purchased_cards), len(p1.purchased_cards)
    if n0 != n1:
      winner = 0 if n0 < n1 else 1
      return winner, f"Player {winner} won on tie-breaker (fewer cards)."
    return None, DRAW_REASON

  # Enumeration

  def legal_actions(self, state: GameState) -> list[Action]:
    """Enumerate every action that passes `validate`.

    Token-taking and reserving moves that would overflow the hand limit get
    the smallest return that fixes it.
    """
    if state.game_over:
      return []
    cfg = self.config
    player = state.player
    board = state.board
    candidates: list[Action] = []

    available = [g for g in Gem.colors() if board.bank.get(g) > 0]
    takes = [TokenBank({g: 1 for g in combo}) for combo in itertools.combinations(available, cfg.take3_count)]
    takes += [TokenBank({g: cfg.take2_count}) for g in Gem.colors()
              if board.bank.get(g) >= cfg.coin_min_count_take2_in_bank]
    for tokens in takes:
      holding = player.tokens.plus(tokens)
      excess = holding.total() - cfg.coin_max_count_per_player
      candidates.append(TakeTokens(tokens=tokens, returns=_minimal_returns(holding, max(0, excess))))

    if len(player.reserved_cards) < cfg.card_max_count_reserved:
      holding = player.tokens.plus({Gem.GOLD: 1}) if board.bank.get(Gem.GOLD) > 0 else player.tokens
      returns = _minimal_returns(holding, max(0, holding.total() - cfg.coin_max_count_per_player))
      for row in board.face_up.values():
        candidates.extend(ReserveCard(card_id=c.id, returns=returns) for c in row)
      for level, deck in board.decks.items():
        if deck:
          candidates.append(ReserveCard(deck_level=level, returns=returns))

    for row in board.face_up.values():
      candidates.extend(PurchaseCard(card_id=c.id) for c in row)
    candidates.extend(PurchaseCard(card_id=c.id) for c in player.reserved_cards)

    legal: list[Action] = []
    for action in candidates:
      try:
        self.validate(state, action)
      except RuleViolation:
        continue
      legal.append(action)
    return legal


__all__ = ["RulesEngine", "compute_payment", "DRAW_REASON"]
