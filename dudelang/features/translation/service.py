"""Slang translation service.

Wraps a Groq chat-completions client. Produces a translation plus an
explanation separated by a sentinel line; whether the explanation is shown
is decided by the client's entitlement gate, not here.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import groq

from dudelang.features.translation.prompts import (
    EXAMPLES_PROMPT,
    EXPLAIN_PROMPT,
    SEPARATOR,
    SYSTEM_PROMPT,
    TRANSLATE_PROMPT,
)
from dudelang.models.language import Language

logger = logging.getLogger("dudelang")

DEFAULT_MODEL = "llama-3.1-8b-instant"


class TranslationError(Exception):
    """User-facing translation failure."""


@dataclass
class TranslationResult:
    translation: str
    explanation: str = ""


def strip_numbering_line(text: str) -> str:
    """Remove any leading numbering or bullets from a single line."""
    return re.sub(r"^\s*(?:\d+[.):\]\-]+\s*|[-•*]+\s+)", "", text).lstrip()


def split_translation(raw: str) -> TranslationResult:
    """Split model output on the sentinel line.

    Without a sentinel the whole output is the translation.
    """
    lines = raw.splitlines()
    for index, line in enumerate(lines):
        if line.strip() == SEPARATOR:
            return TranslationResult(
                translation="\n".join(lines[:index]).strip(),
                explanation="\n".join(lines[index + 1:]).strip(),
            )
    if SEPARATOR in raw:
        head, tail = raw.split(SEPARATOR, 1)
        return TranslationResult(translation=head.strip(), explanation=tail.strip())
    return TranslationResult(translation=raw.strip(), explanation="")


class SlangTranslator:
    """Translation collaborator backed by Groq."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client=None,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        if client is not None:
            self.client = client
        elif api_key:
            self.client = groq.Groq(api_key=api_key)
        else:
            logger.warning("Groq API key is not set. Translation functionality will be disabled.")
            self.client = None

    def _complete(self, prompt: str) -> str:
        if self.client is None:
            raise TranslationError(
                "Translation service is not initialized. Please configure GROQ_API_KEY."
            )
        try:
            response = self.client.chat.completions.create(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except groq.AuthenticationError as e:
            logger.error(f"[translation] auth error: {e}")
            raise TranslationError("The provided API key is not valid. Please check your configuration.") from e
        except groq.APIError as e:
            logger.error(f"[translation] Groq error: {e}")
            raise TranslationError(f"Service error: {e}") from e

        content = response.choices[0].message.content
        if not isinstance(content, str):
            raise TranslationError("Received an invalid response format from the service.")
        return content.strip()

    def translate(self, text: str, source: Language, target: Language) -> TranslationResult:
        if not text.strip():
            return TranslationResult(translation="", explanation="")
        if source.code == target.code:
            return TranslationResult(translation=text, explanation="")

        prompt = TRANSLATE_PROMPT.format(
            source=source.name, target=target.name, text=text, separator=SEPARATOR
        )
        return split_translation(self._complete(prompt))

    def explain(self, text: str, language: Language) -> str:
        if not text.strip():
            return ""
        return self._complete(EXPLAIN_PROMPT.format(language=language.name, text=text))

    def examples(self, text: str, language: Language) -> List[str]:
        if not text.strip():
            return []
        raw = self._complete(EXAMPLES_PROMPT.format(language=language.name, text=text))
        cleaned = (strip_numbering_line(line).strip() for line in raw.splitlines())
        return [line for line in cleaned if line]
