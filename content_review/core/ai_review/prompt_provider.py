"""
System prompt provider.

Loads the reviewer system prompt from the blob store and reuses it for
a TTL. A missing prompt falls back to the built-in default; a store
outage reuses the last loaded prompt when one exists.

Dependencies: content_review.boundary.aws.interfaces
System role: Prompt source for the AI reviewer client
"""

import logging
import time
from collections.abc import Callable

from content_review.boundary.aws.interfaces import BlobStore
from content_review.core.exceptions import BlobNotFoundError, BlobStoreError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are an expert content reviewer. Review the supplied content for clarity, \
structure, accuracy, tone and accessibility.

Respond using exactly these sections:

[SCORES]
Category: N/5 - one sentence justification
(one line per category)
[/SCORES]

[REVIEWED_CONTENT]
The original content, with each problem wrapped as [ISSUE:category]problem text[/ISSUE]
[/REVIEWED_CONTENT]

[IMPROVEMENTS]
[PRIORITY: high|medium|low]
CATEGORY: category name
ISSUE: what is wrong
WHY: why it matters
CURRENT: the current wording
SUGGESTED: the improved wording
(repeat for each improvement)
[/IMPROVEMENTS]

Never repeat personal data. Redaction labels such as [EMAIL_REDACTED] are intentional; leave them as they are."""


class PromptProvider:
    """Cached loader for the reviewer system prompt."""

    def __init__(
        self,
        blob_store: BlobStore,
        prompt_key: str,
        cache_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._blobs = blob_store
        self._key = prompt_key
        self._ttl = cache_ttl_seconds
        self._clock = clock
        self._cached: str | None = None
        self._loaded_at = 0.0

    def invalidate(self) -> None:
        self._cached = None

    async def get_system_prompt(self) -> str:
        """
        Return the current system prompt.

        Returns:
            str: Prompt from the blob store, cached, or the default
        """
        if self._cached is not None and self._clock() - self._loaded_at < self._ttl:
            return self._cached

        try:
            data = await self._blobs.get(self._key)
            prompt = data.decode("utf-8", errors="replace").strip()
            if not prompt:
                logger.warning(f"{__name__}:get_system_prompt - Prompt {self._key} is empty, using default")
                prompt = DEFAULT_SYSTEM_PROMPT
        except BlobNotFoundError:
            logger.warning(f"{__name__}:get_system_prompt - Prompt {self._key} not found, using default")
            prompt = DEFAULT_SYSTEM_PROMPT
        except BlobStoreError as e:
            if self._cached is not None:
                logger.warning(
                    "%s:get_system_prompt - Reload failed, reusing cached prompt: %s",
                    __name__,
                    e.message,
                )
                return self._cached
            logger.error("%s:get_system_prompt - Load failed, using default: %s", __name__, e.message)
            return DEFAULT_SYSTEM_PROMPT

        self._cached = prompt
        self._loaded_at = self._clock()
        return prompt
