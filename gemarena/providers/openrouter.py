"""OpenRouterProvider: asks a hosted model for a move through OpenRouter's
OpenAI-compatible chat-completions endpoint.

The reply is a flat JSON object (no nested action) so that every model can
fill it reliably under a strict JSON schema; `MoveResponse` validates it and
turns it into an `Action`.
"""
import json
import logging
from typing import Any, Literal

import openai
from pydantic import BaseModel, NonNegativeInt, ValidationError

from ..actions import Action, PurchaseCard, ReserveCard, TakeTokens
from ..config import ReasoningConfig
from ..errors import FormatError, TransportError
from ..state import GameState
from ..typings import CardLevel, Gem, TokenBank
from .core import MoveProposal, MoveProvider

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 120.0

_COLOR_FIELDS = tuple(g.name for g in Gem.colors())


def _response_schema() -> dict[str, Any]:
  properties: dict[str, Any] = {
    "reasoning": {"type": "string"},
    "action_type": {"type": "string", "enum": ["TAKE_TOKENS", "RESERVE_CARD", "PURCHASE_CARD"]},
  }
  for prefix in ("take", "return"):
    for color in _COLOR_FIELDS:
      properties[f"{prefix}_{color}"] = {"type": "integer"}
  properties["card_id"] = {"type": "string"}
  properties["deck_level"] = {"type": "string", "enum": ["", *(str(lvl) for lvl in CardLevel)]}
  return {
    "name": "game_action",
    "strict": True,
    "schema": {
      "type": "object",
      "properties": properties,
      "required": list(properties),
      "additionalProperties": False,
    },
  }


RESPONSE_FORMAT = {"type": "json_schema", "json_schema": _response_schema()}


class MoveResponse(BaseModel):
  reasoning: str = "No reasoning provided."
  action_type: Literal["TAKE_TOKENS", "RESERVE_CARD", "PURCHASE_CARD"]
  take_WHITE: NonNegativeInt = 0
  take_BLUE: NonNegativeInt = 0
  take_GREEN: NonNegativeInt = 0
  take_RED: NonNegativeInt = 0
  take_BLACK: NonNegativeInt = 0
  return_WHITE: NonNegativeInt = 0
  return_BLUE: NonNegativeInt = 0
  return_GREEN: NonNegativeInt = 0
  return_RED: NonNegativeInt = 0
  return_BLACK: NonNegativeInt = 0
  card_id: str = ""
  deck_level: Literal["", "LEVEL_1", "LEVEL_2", "LEVEL_3"] = ""

  def _tokens(self, prefix: str) -> TokenBank:
    return TokenBank({Gem[color]: getattr(self, f"{prefix}_{color}") for color in _COLOR_FIELDS})

  def to_action(self) -> Action:
    card_id = self.card_id.strip() or None
    match self.action_type:
      case "TAKE_TOKENS":
        return TakeTokens(tokens=self._tokens("take"), returns=self._tokens("return"))
      case "RESERVE_CARD":
        return ReserveCard(card_id=card_id,
                           deck_level=CardLevel[self.deck_level] if self.deck_level else None,
                           returns=self._tokens("return"))
      case "PURCHASE_CARD":
        if card_id is None:
          raise FormatError("PURCHASE_CARD requires a card_id")
        return PurchaseCard(card_id=card_id)


def strip_code_fences(content: str) -> str:
  content = content.strip()
  if content.startswith("```json"):
    content = content[len("```json"):]
  elif content.startswith("```"):
    content = content[3:]
  if content.endswith("```"):
    content = content[:-3]
  return content.strip()


def parse_move_response(content: str) -> MoveProposal:
  """Parse a raw model reply; raises `FormatError` if it does not fit."""
  try:
    response = MoveResponse.model_validate_json(strip_code_fences(content))
  except ValidationError as e:
    raise FormatError(f"Could not parse model response: {e}") from e
  return MoveProposal(rationale=response.reasoning, action=response.to_action())


class OpenRouterProvider(MoveProvider):
  """Remote provider. SDK-level retries are disabled; the simulator owns
  backoff so it can enforce its cumulative wait budget."""

  def __init__(
      self,
      model: str,
      *,
      api_key: str | None = None,
      reasoning: ReasoningConfig | None = None,
      timeout: float = DEFAULT_TIMEOUT,
      client: Any = None,
  ) -> None:
    super().__init__(model)
    self.reasoning = reasoning or ReasoningConfig()
    self.timeout = timeout
    self.client = client if client is not None else openai.OpenAI(
      api_key=api_key, base_url=OPENROUTER_BASE_URL, max_retries=0, timeout=timeout)

  def _request(self, state: GameState, instructions: str) -> dict[str, Any]:
    request: dict[str, Any] = {
      "model": self.model,
      "messages": [
        {"role": "system", "content": instructions},
        {"role": "user", "content": f"Current game state: {json.dumps(state.public_view())}"},
      ],
      "response_format": RESPONSE_FORMAT,
      "timeout": self.timeout,
    }
    if self.reasoning.enabled:
      request["extra_body"] = {
        "reasoning": {"effort": self.reasoning.effort, "exclude": self.reasoning.exclude},
      }
    return request

  def propose_move(self, state: GameState, instructions: str) -> MoveProposal:
    try:
      completion = self.client.chat.completions.create(**self._request(state, instructions))
    except openai.APITimeoutError as e:
      raise TransportError(f"Request timeout: {e}") from e
    except openai.APIConnectionError as e:
      raise TransportError(f"Connection error: {e}") from e
    except openai.APIStatusError as e:
      if e.status_code == 429 or e.status_code >= 500:
        raise TransportError(f"Network error: HTTP {e.status_code} from provider") from e
      raise

    if not completion.choices:
      raise FormatError("Model returned no choices")
    content = completion.choices[0].message.content
    if not content:
      raise FormatError("Model returned an empty message")
    logger.debug("Raw response from %s: %s", self.model, content)
    return parse_move_response(content)


__all__ = ["OpenRouterProvider", "MoveResponse", "parse_move_response", "strip_code_fences"]
