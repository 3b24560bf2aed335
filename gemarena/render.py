"""Human-readable board summary for the console log."""
from collections.abc import Sequence

from .state import GameState, PlayerState
from .typings import DevelopmentCard, TokenBank

RULE = "=" * 78


def _short_model(model: str) -> str:
  # "anthropic/claude-haiku-4.5" -> "claude-haiku-4.5"
  return model.rsplit("/", 1)[-1]


def format_tokens(bank: TokenBank) -> str:
  return " ".join(f"{g.short_str()}:{n}" for g, n in bank) or "-"


def format_card(card: DevelopmentCard) -> str:
  pts = "1pt" if card.points == 1 else f"{card.points}pts"
  return f"[{card.id}] {card.bonus.short_str()} {pts} {format_tokens(card.cost)}"


def _format_player(p: PlayerState, model: str, current: bool) -> list[str]:
  lines = [
    f"{_short_model(model)} (P{p.seat_id}){' (Current)' if current else ''}:",
    f"  Score: {p.score} | Cards: {len(p.purchased_cards)} | Nobles: {len(p.visited_nobles)}",
    f"  Tokens: {format_tokens(p.tokens)}",
    f"  Bonuses: {format_tokens(p.bonuses)}",
  ]
  if not p.reserved_cards:
    lines.append("  Reserved: None")
  for i, c in enumerate(p.reserved_cards):
    lines.append(("  Reserved: " if i == 0 else " " * 12) + format_card(c))
  return lines


def format_state(state: GameState, models: Sequence[str]) -> str:
  """Return a multi-line summary: bank, face-up rows, nobles and players."""
  board = state.board
  current = _short_model(models[state.current_player])
  lines = [
    RULE,
    f"TURN {state.turn} | Current Player: {current} (P{state.current_player})",
    RULE,
    "[BOARD BANK]",
    format_tokens(board.bank),
    "[FACE-UP CARDS]",
  ]
  for level, row in board.face_up.items():
    cards = " | ".join(format_card(c) for c in row) or "(empty)"
    lines.append(f"L{int(level)} ({len(board.decks[level])} in deck): {cards}")
  lines.append("[NOBLES]")
  lines.append(" | ".join(f"[{n.id}] {n.points}pts {format_tokens(n.requirement)}" for n in board.nobles) or "None")
  lines.append("[PLAYERS]")
  for p in state.players:
    lines.extend(_format_player(p, models[p.seat_id], p.seat_id == state.current_player))
  lines.append(RULE)
  return "\n".join(lines)


__all__ = ["format_state", "format_card", "format_tokens"]
