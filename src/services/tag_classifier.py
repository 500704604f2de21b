"""Category tagging of saved links against the closed tag vocabulary.

The model is asked for a JSON array of 2-4 tags, but its output is
treated as untrusted text.  Parsing tries, in order:

1. the whole response as JSON;
2. a fenced or embedded ``[...]`` array, with single quotes and trailing
   commas repaired;
3. a plain comma split with brackets and quotes stripped.

Whatever comes out is whitelisted against :data:`TAG_VOCABULARY`
(case-insensitively, mapped to canonical casing), de-duplicated and
capped.  An empty result, or a provider that keeps failing, yields the
default ``["Article", "Blog"]`` pair.
"""

from __future__ import annotations

import json
import re

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.record import DEFAULT_TAGS, TAG_VOCABULARY, filter_tags
from src.services.summarizer import clip_input
from src.utils.errors import LLMError
from src.utils.retry import retry_async

logger = structlog.get_logger(logger_name=__name__)

_TAG_SYSTEM_PROMPT = (
    "You are a helpful assistant that categorizes content. "
    f"From the following list of tags: {', '.join(TAG_VOCABULARY)}, "
    "select 2-4 of the most appropriate tags for the provided content. "
    "Return only the tag names as a JSON array with no explanation or additional text. "
    'Example response format: ["Tag1", "Tag2"]'
)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)
_ARRAY_RE = re.compile(r"\[(.*)\]", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*$")


def parse_tag_response(response: str) -> list[str]:
    """Recover a list of candidate tag strings from raw model output.

    Never raises.  Non-string items are dropped.
    """
    cleaned = (response or "").strip()
    if not cleaned:
        return []

    fence_match = _FENCE_RE.search(cleaned)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, list):
        return [item for item in data if isinstance(item, str)]

    array_match = _ARRAY_RE.search(cleaned)
    if array_match:
        inner = _TRAILING_COMMA_RE.sub("", array_match.group(1).replace("'", '"').strip())
        try:
            data = json.loads(f"[{inner}]")
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            return [item for item in data if isinstance(item, str)]

    stripped = re.sub(r"[\[\]\"']", "", cleaned)
    return [part.strip() for part in stripped.split(",") if part.strip()]


class TagClassifier:
    """Assigns 1-5 vocabulary tags to extracted page content."""

    def __init__(
        self,
        llm: ILLMProvider,
        max_attempts: int = 3,
        backoff: float = 0.5,
    ) -> None:
        self._llm = llm
        self._max_attempts = max_attempts
        self._backoff = backoff

    async def classify(self, content: str) -> list[str]:
        user_prompt = clip_input(content)

        async def _attempt() -> str:
            return await self._llm.complete(
                system_prompt=_TAG_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                temperature=0.3,
                max_tokens=50,
            )

        try:
            response = await retry_async(
                _attempt,
                attempts=self._max_attempts,
                backoff=self._backoff,
                retry_on=(LLMError,),
                event="tag_attempt_failed",
                logger=logger,
            )
        except LLMError as exc:
            logger.warning("tag_generation_degraded", stage="tags", error=str(exc))
            return list(DEFAULT_TAGS)

        tags = filter_tags(parse_tag_response(response))
        if not tags:
            logger.info("tag_output_unusable", response_preview=(response or "")[:80])
            return list(DEFAULT_TAGS)
        return tags
