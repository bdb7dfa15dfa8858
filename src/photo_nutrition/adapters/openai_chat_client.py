"""OpenAI-compatible chat completions client for vision and text models."""

from dataclasses import dataclass
from typing import Protocol

import httpx
import openai
from openai import AsyncOpenAI

from photo_nutrition.errors import (
    PipelineTimeout,
    UpstreamAuthError,
    UpstreamEmpty,
    UpstreamMalformed,
    UpstreamRateLimited,
    UpstreamServiceError,
)


class ChatClient(Protocol):
    """Interface for chat completion calls that return the reply text."""

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, object]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the text of the first choice."""


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by the OpenAI SDK pointed at an OpenRouter-style proxy."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls,
        api_key: str,
        base_url: str,
        *,
        referer_url: str,
        app_title: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> "OpenAIChatClient":
        """Create a client that never retries and attributes calls to the app."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                max_retries=0,
                default_headers={"HTTP-Referer": referer_url, "X-Title": app_title},
                http_client=http_client,
            )
        )

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, object]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Call chat completions and map SDK errors onto pipeline errors."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.RateLimitError as exc:
            raise UpstreamRateLimited() from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise UpstreamAuthError() from exc
        except openai.APITimeoutError as exc:
            raise PipelineTimeout() from exc
        except openai.APIStatusError as exc:
            raise UpstreamServiceError(
                f"AI service error ({exc.status_code})"
            ) from exc
        except openai.APIConnectionError as exc:
            raise UpstreamServiceError("AI service unreachable") from exc
        except openai.APIResponseValidationError as exc:
            raise UpstreamMalformed() from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamMalformed("AI response contained no choices")
        content = choices[0].message.content
        if not content:
            raise UpstreamEmpty()
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
