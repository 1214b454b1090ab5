"""Chat-completion client for the analysis pass and follow-up questions."""

from __future__ import annotations

import logging
from typing import Any, Literal

import openai
from openai import OpenAI
from pydantic import BaseModel, Field

from sre_assist.analysis.prompts import ANALYSIS_REQUEST
from sre_assist.config import Settings
from sre_assist.errors import AnalysisError

logger = logging.getLogger(__name__)

AUTH_TROUBLESHOOTING = """

Troubleshooting:
1. Verify your API key is correct
2. Ensure there are no extra spaces or newlines in the key
3. Check your environment variables: LLM_API_KEY, OPENAI_API_KEY, etc.
4. Verify the API key format matches your LLM provider's requirements
5. Confirm the base URL ({base_url}) is correct for your LLM provider"""


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class Conversation(BaseModel):
    """Running transcript; the whole history is sent on every request."""

    messages: list[ChatMessage] = Field(default_factory=list)

    def add(self, role: Literal["system", "user", "assistant"], content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def as_payload(self) -> list[dict[str, str]]:
        return [m.model_dump() for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


def _clean_api_key(api_key: str | None) -> str:
    return (api_key or "").strip().replace("\n", "").replace("\r", "")


def _openai_client(settings: Settings) -> OpenAI:
    """Build an OpenAI client for any OpenAI-compatible endpoint."""
    return OpenAI(
        api_key=_clean_api_key(settings.llm_api_key),
        base_url=settings.llm_base_url.rstrip("/"),
        timeout=settings.llm_timeout,
        max_retries=0,
    )


def _error_message(e: openai.APIStatusError) -> str:
    """Prefer ``error.message`` from the response body, else the raw body."""
    body: Any = e.body
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    text = e.response.text if e.response is not None else ""
    return text or e.message


class LLMAnalyzer:
    """Sends diagnostic content to the configured endpoint."""

    def __init__(self, settings: Settings, client: Any = None) -> None:
        self.settings = settings
        self._client = client if client is not None else _openai_client(settings)

    def _complete(self, messages: list[dict[str, str]]) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.settings.llm_model,
                messages=messages,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except openai.AuthenticationError as e:
            raise AnalysisError(
                f"authentication failed (401): {_error_message(e)}"
                + AUTH_TROUBLESHOOTING.format(base_url=self.settings.llm_base_url)
            ) from e
        except openai.APIStatusError as e:
            raise AnalysisError(f"LLM API returned status {e.status_code}: {_error_message(e)}") from e
        except openai.APIConnectionError as e:
            raise AnalysisError(f"failed to send request: {e}") from e
        except openai.APIError as e:
            raise AnalysisError(f"failed to decode response: {e}") from e

        if not response.choices:
            raise AnalysisError("no response from LLM")
        return response.choices[0].message.content or ""

    def analyze(self, system_prompt: str, subject: str, content: str) -> tuple[str, Conversation]:
        """Run the analysis pass; returns the answer and the transcript including it."""
        conversation = Conversation()
        conversation.add("system", system_prompt)
        conversation.add("user", ANALYSIS_REQUEST.format(subject=subject, content=content))
        logger.debug("Sending %d characters of diagnostics to %s", len(content), self.settings.llm_model)
        answer = self._complete(conversation.as_payload())
        conversation.add("assistant", answer)
        return answer, conversation

    def ask(self, conversation: Conversation, question: str) -> str:
        """Ask a follow-up; the transcript only grows when the call succeeds."""
        payload = conversation.as_payload() + [{"role": "user", "content": question}]
        answer = self._complete(payload)
        conversation.add("user", question)
        conversation.add("assistant", answer)
        return answer
