from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
import litellm

from .models import Message, Role


class LLMClient(BaseModel):
    """
    Conversation-keeping client for LLM players, backed by LiteLLM.

    Any extra keyword given at construction (top_p, reasoning_effort,
    provider-specific thinking settings) is forwarded on every call.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra='allow')

    model: str
    temperature: float = 1.0
    max_tokens: Optional[int] = None
    max_pairs: int = Field(default=10, ge=1)
    messages: List[Dict[str, str]] = Field(default_factory=list)

    @property
    def additional_params(self) -> Dict[str, Any]:
        """Extra parameters passed during initialization."""
        return self.__pydantic_extra__ or {}

    def add_message(self, role: Role, content: str) -> None:
        """
        Append a message to the conversation.

        Args:
            role: "system", "user" or "assistant"
            content: The message content
        """
        self.messages.append(Message(role=role, content=content).model_dump())

    def clear_messages(self) -> None:
        self.messages = []

    def get_messages(self) -> List[Dict[str, str]]:
        """Copy of the conversation in OpenAI chat format."""
        return self.messages.copy()

    def _get_trimmed_messages(self, max_pairs: Optional[int] = None) -> List[Dict[str, str]]:
        """
        The system prompt plus the last `max_pairs` user/assistant pairs.

        A game can run for dozens of rounds; older puzzles are irrelevant to
        the current one.
        """
        if not self.messages:
            return []

        max_pairs = max_pairs or self.max_pairs
        system = [m for m in self.messages if m["role"] == "system"][:1]
        conversation = [m for m in self.messages if m["role"] != "system"]
        return system + conversation[-max_pairs * 2:]

    def _build_params(self, **kwargs: Any) -> Dict[str, Any]:
        params = {
            "model": self.model,
            "messages": self._get_trimmed_messages(),
            "temperature": self.temperature,
            **self.additional_params,
            **kwargs
        }

        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens

        # reasoning_effort is only forwarded when explicitly allowed
        if "reasoning_effort" in params:
            allowed = list(params.get("allowed_openai_params", []))
            if "reasoning_effort" not in allowed:
                allowed.append("reasoning_effort")
            params["allowed_openai_params"] = allowed

        return params

    def completion(self, **kwargs: Any) -> Any:
        """
        Blocking completion over the trimmed history.

        Args:
            **kwargs: Additional arguments for litellm.completion()

        Returns:
            The LiteLLM ModelResponse
        """
        return litellm.completion(**self._build_params(**kwargs))

    async def acompletion(self, **kwargs: Any) -> Any:
        """
        Async completion over the trimmed history, for use while a round
        clock is running on the event loop.

        Args:
            **kwargs: Additional arguments for litellm.acompletion()

        Returns:
            The LiteLLM ModelResponse
        """
        return await litellm.acompletion(**self._build_params(**kwargs))
