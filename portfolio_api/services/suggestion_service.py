"""
Rewording suggestions for contact form drafts.

Two providers are available: "fake" produces deterministic rewordings
offline (local development and tests) and "openai" asks a chat model.
"""

import json
from typing import List, Optional

from openai import OpenAI

from portfolio_api.core.config import settings
from portfolio_api.core.logging import get_logger

logger = get_logger(__name__)

SUGGESTION_COUNT = 3

SYSTEM_PROMPT = "You return ONLY valid JSON objects."

USER_PROMPT = """You are an assistant that suggests alternative rewordings for email messages.

Given the following email message and context, provide {count} distinct alternative
rewordings that keep the original intent but improve clarity, tone, or conciseness.

Message: {message}
Context: {context}

Respond with a JSON object of the form {{"suggestions": ["...", "...", "..."]}}."""


class SuggestionError(Exception):
    """Raised when the provider fails or returns something unusable."""


class FakeSuggestionProvider:
    """Offline provider returning simple template-based rewordings."""

    def suggest(self, message: str, context: Optional[str] = None) -> List[str]:
        text = " ".join(message.split())
        if text and text[-1] not in ".!?":
            text += "."
        suggestions = [
            f"Hi, {text[0].lower()}{text[1:]}" if text else "Hi.",
            f"{text} I look forward to hearing from you.",
            f"I hope you're well. {text}",
        ]
        if context:
            suggestions[2] = f"Regarding {context.strip()}: {text}"
        return suggestions[:SUGGESTION_COUNT]


class OpenAISuggestionProvider:
    """Provider backed by the OpenAI chat completions API."""

    def __init__(self, client: Optional[OpenAI] = None):
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)

    def suggest(self, message: str, context: Optional[str] = None) -> List[str]:
        response = self.client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": USER_PROMPT.format(
                        count=SUGGESTION_COUNT,
                        message=message,
                        context=context or "None provided",
                    ),
                },
            ],
            temperature=settings.OPENAI_TEMPERATURE,
        )

        content = response.choices[0].message.content
        if not content:
            raise SuggestionError("Empty response from OpenAI")

        return parse_suggestions(content)


def parse_suggestions(content: str) -> List[str]:
    """
    Extract the suggestion list from a model reply.

    Accepts a bare JSON list or an object with a "suggestions" key, optionally
    wrapped in markdown code fences.
    """
    content = content.strip()

    # Clean markdown code fences if present
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
        content = content.strip()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SuggestionError(f"Provider returned invalid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("suggestions")

    if not isinstance(data, list):
        raise SuggestionError("Provider reply has no suggestions list")

    suggestions = [str(item).strip() for item in data if str(item).strip()]
    if not suggestions:
        raise SuggestionError("Provider returned no suggestions")
    return suggestions[:SUGGESTION_COUNT]


class SuggestionService:
    """Front for whichever provider LLM_PROVIDER selects."""

    def __init__(self, provider_name: str):
        self.provider_name = provider_name.lower()
        self._provider = None

    @property
    def provider(self):
        # Built lazily so the OpenAI client is only created when used
        if self._provider is None:
            if self.provider_name == "openai":
                self._provider = OpenAISuggestionProvider()
            elif self.provider_name == "fake":
                self._provider = FakeSuggestionProvider()
            else:
                raise SuggestionError(f"Unknown LLM_PROVIDER '{self.provider_name}'")
        return self._provider

    def suggest(self, message: str, context: Optional[str] = None) -> List[str]:
        try:
            suggestions = self.provider.suggest(message, context)
        except SuggestionError as e:
            logger.error(
                json.dumps(
                    {
                        "event": "suggestions_failed",
                        "provider": self.provider_name,
                        "error": str(e),
                    }
                )
            )
            raise
        except Exception as e:
            logger.error(
                json.dumps(
                    {
                        "event": "suggestions_error",
                        "provider": self.provider_name,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    }
                )
            )
            raise SuggestionError("Suggestion provider failed") from e

        logger.info(
            json.dumps(
                {
                    "event": "suggestions_generated",
                    "provider": self.provider_name,
                    "count": len(suggestions),
                }
            )
        )
        return suggestions


# Singleton instance
suggestion_service = SuggestionService(settings.LLM_PROVIDER)
