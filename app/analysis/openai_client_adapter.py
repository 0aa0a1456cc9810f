import httpx
import openai

from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import (
    AnalysisConfigurationError,
    AnalysisError,
    AnalysisNetworkError,
)


class OpenAIClientAdapter(BaseAnalysisClient):
    """Analysis AI client adapter built on the OpenAI-compatible chat API.

    A missing API key for the hosted OpenAI endpoint is reported on first use
    rather than at start-up, so the failure lands on the record being analysed.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client: openai.OpenAI | None = None
        if api_key or base_url is not None:
            self._client = openai.OpenAI(
                api_key=api_key or "not-required",
                timeout=timeout_seconds,
                base_url=base_url,
            )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        if self._client is None:
            raise AnalysisConfigurationError("AI provider API key is not configured")
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "profile_analysis",
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise AnalysisNetworkError(f"AI provider network error: {exc}") from exc
        except (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.NotFoundError,
        ) as exc:
            raise AnalysisConfigurationError(
                f"AI provider rejected configuration: {exc}"
            ) from exc
        except openai.APIError as exc:
            raise AnalysisNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise AnalysisError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise AnalysisError("AI returned empty response")
        return content
