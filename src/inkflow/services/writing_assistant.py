"""LLM-backed rewriting collaborator: corrections, rewrites and suggestions.

Nothing here raises to the caller. A failed correction returns the original
text unchanged and a failed rewrite returns no options, so the editor only
ever sees "nothing happened".
"""

import json
import re
from typing import Optional, Protocol

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from inkflow.models.suggestion import Suggestion, SuggestionKind
from inkflow.services.llm_client import LLMClient

logger = structlog.get_logger()

_STRING_LIST = TypeAdapter(list[str])
_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")


class Corrector(Protocol):
    """Anything that can return a corrected version of a text."""

    async def correct(self, text: str) -> str: ...


JSON_ARRAY_RULES = (
    "Output ONLY a JSON array of strings.\n"
    "CRITICAL FORMAT RULES:\n"
    "- The first character of output must be [\n"
    "- NO markdown, explanations, or conversational text\n"
    "- Each option is a complete replacement for the original text\n"
)

# (option count, instruction) per suggestion kind
SUGGESTION_PROMPTS: dict[str, tuple[int, str]] = {
    "synonym": (
        6,
        "Provide {count} distinct synonyms or short phrasing variations for the word or phrase.",
    ),
    "expand": (
        6,
        "Rewrite the text to be more descriptive, flow better, and be slightly longer. "
        "Provide {count} variations ranging from concise to flowery.",
    ),
    "grammar": (
        6,
        "Check the grammar and style of the text. Provide up to {count} corrected versions, "
        "ranging from strict grammatical fixes to stylistic improvements.",
    ),
    "sensory": (
        4,
        "Rewrite the paragraph {count} times, adding details of smell, touch, sound and sight. "
        "Make it vivid.",
    ),
    "show-dont-tell": (
        4,
        "Rewrite the paragraph {count} times applying the 'Show, Don't Tell' principle: instead "
        "of stating emotions or facts, describe the actions and environment that prove them.",
    ),
}

CUSTOM_REWRITE_COUNT = 4


def parse_string_list(response: str) -> list[str]:
    """
    Parse an LLM response that should be a JSON array of strings.

    Markdown code fences around the array are tolerated.

    Raises:
        ValueError: If the response is not a JSON array of strings
    """
    cleaned = _CODE_FENCE.sub("", response.strip()).strip()
    try:
        options = _STRING_LIST.validate_python(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Expected a JSON array of strings: {e}") from e
    return [option.strip() for option in options if option.strip()]


class WritingAssistant:
    """
    Rewriting collaborator backed by an LLMClient.

    Example:
        >>> assistant = WritingAssistant(LLMClient(config.llm))
        >>> fixed = await assistant.correct("he go to the store yesterday")
        >>> options = await assistant.rewrite(fixed, "make it ominous")
    """

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def correct(self, text: str) -> str:
        """
        Return text with spelling, grammar and punctuation fixed.

        Style and meaning are left alone. Any failure, or an empty answer,
        yields the original text.
        """
        system_prompt = (
            "You are a meticulous copy editor.\n"
            "Fix spelling, grammar and punctuation errors in the user's text.\n\n"
            "Rules:\n"
            "1. Do NOT change wording, tone or meaning beyond what a correction needs\n"
            "2. Preserve line breaks and dialogue formatting exactly\n"
            "3. If the text is already correct, return it unchanged\n"
            "4. Output ONLY the corrected text: no quotes, no explanations"
        )
        try:
            corrected = await self.llm_client.complete(
                prompt=text,
                system_prompt=system_prompt,
                temperature=0.1,  # Corrections should be deterministic
                request_id="correct",
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("correction_failed", error=str(e), error_type=type(e).__name__)
            return text

        corrected = corrected.strip()
        if not corrected:
            logger.warning("correction_empty_response", text_length=len(text))
            return text
        return corrected

    async def _options(self, text: str, instruction: str, request_id: str) -> list[str]:
        system_prompt = f"You are a fiction writing assistant.\n{JSON_ARRAY_RULES}"
        prompt = f"{instruction}\n\nText:\n\"{text}\"\n\nOutput the JSON array now:"
        try:
            response = await self.llm_client.complete(
                prompt=prompt,
                system_prompt=system_prompt,
                temperature=0.8,  # Variations should differ from each other
                request_id=request_id,
            )
            return parse_string_list(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "rewrite_failed",
                request_id=request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

    async def rewrite(self, text: str, instruction: str) -> list[str]:
        """Rewrite text following a free-form instruction. Returns [] on failure."""
        prompt = (
            f"Rewrite the following text based strictly on this instruction: \"{instruction}\". "
            f"Provide {CUSTOM_REWRITE_COUNT} distinct variations."
        )
        options = await self._options(text, prompt, request_id="rewrite")
        return options[:CUSTOM_REWRITE_COUNT]

    async def suggest(self, text: str, kind: SuggestionKind, instruction: Optional[str] = None) -> Suggestion:
        """
        Offer alternatives for text.

        Args:
            text: Selected text or paragraph
            kind: Suggestion kind; "custom" requires an instruction
            instruction: Free-form instruction for custom rewrites

        Returns:
            Suggestion whose options are empty if the request failed
        """
        if kind == "custom":
            options = await self.rewrite(text, instruction or "")
            return Suggestion(kind=kind, original_text=text, options=options)

        count, template = SUGGESTION_PROMPTS[kind]
        options = await self._options(text, template.format(count=count), request_id=f"suggest_{kind}")
        return Suggestion(kind=kind, original_text=text, options=options[:count])
