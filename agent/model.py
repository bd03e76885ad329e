# =============================================================================
# agent/model.py  —  Language-model collaborator (LiteLLM)
# =============================================================================
#
# The loop only needs one operation:
#
#     chat(messages, tool_catalog) -> ModelReply(text, tool_calls)
#
# LiteLlmChatModel implements it with litellm.acompletion, so any provider
# LiteLLM knows ("openrouter/openai/gpt-4o", "gpt-4o-mini", ...) works by
# changing LLM_MODEL.  Tests pass their own object with the same `chat`.
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import litellm

from core.config import Settings
from core.errors import ModelCallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call exactly as the model asked for it (arguments still JSON text)."""

    id: str
    name: str
    arguments: str = "{}"


@dataclass
class ModelReply:
    text: Optional[str] = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)

    def to_message(self) -> dict[str, Any]:
        """The assistant message to append to the running conversation."""
        message: dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class ChatModel(Protocol):
    async def chat(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelReply: ...


class LiteLlmChatModel:
    def __init__(self, model: str, temperature: float = 0.2):
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "LiteLlmChatModel":
        return cls(settings.llm_model, settings.llm_temperature)

    async def chat(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelReply:
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=self.temperature,
            )
        except Exception as e:
            raise ModelCallError(f"{self.model} call failed: {e}") from e

        try:
            message = response.choices[0].message
        except (AttributeError, IndexError) as e:
            raise ModelCallError(f"{self.model} returned no choices") from e

        tool_calls = [
            ToolCallRequest(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in (message.tool_calls or [])
        ]
        logger.debug("Model replied with %d tool call(s)", len(tool_calls))
        return ModelReply(text=message.content, tool_calls=tool_calls)
