"""
AI cleanup stage of the extraction pipeline.

Tidies dictated or recognized prayer text with a language model. It is only
ever run on explicit user request, and its result is a suggestion the
caller may accept or discard.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

import litellm

from ..core.i18n import t
from ..domain.errors import CleanupNotAvailable, EmptyInput, SummarizationFailed
from ..domain.ports import TextRewriter
from ..utils.logging import PipelineLogContext

logger = logging.getLogger(__name__)

CLEANUP_INSTRUCTIONS = """You are a prayer text organizer. You MUST respond ONLY in the language of the input.

YOUR TASK: Transform voice-recorded or scanned content into a well-structured prayer.

RULES YOU MUST FOLLOW:
1. REMOVE all filler words (어, 음, 그, 저기, 뭐, 이제, um, uh, like...)
2. PRESERVE the original meaning - NEVER add content that wasn't in the input
3. ORGANIZE into these sections only if the content applies (DO NOT force sections):
   - Thanksgiving (감사): expressions of gratitude
   - Petition (간구): requests, needs and wishes
   - Resolution (결심): commitments, vows and determinations
4. POLISH sentences to sound natural, reverent and heartfelt
5. MAINTAIN the speaker's personal voice and emotional tone
6. ONLY output the refined prayer text - NO section labels, NO explanations, NO commentary

EXAMPLE INPUT:
"어... 하나님 감사합니다 음... 오늘 하루도 뭐 지켜주시고 저기 가족들 건강하게 해주세요 그리고 이제 제가 좀 더 열심히 살겠습니다"

EXAMPLE OUTPUT:
"하나님, 오늘 하루도 지켜주심에 감사드립니다. 사랑하는 가족들이 건강하게 지낼 수 있도록 돌봐주세요. 더욱 열심히 살아가겠습니다."
"""


class AIAvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    USER_DISABLED = "user_disabled"


@dataclass(frozen=True)
class AIAvailability:
    status: AIAvailabilityStatus
    reason: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status is AIAvailabilityStatus.AVAILABLE


class LiteLLMTextRewriter:
    """TextRewriter backed by a LiteLLM chat model."""

    def __init__(self, model: str = "gpt-4o-mini") -> None:
        self.model = model

    def is_available(self) -> bool:
        env = litellm.validate_environment(model=self.model)
        if not env.get("keys_in_environment"):
            logger.info(f"Missing credentials for {self.model}: {env.get('missing_keys')}")
            return False
        return True

    def rewrite(self, text: str, instructions: str) -> str:
        logger.info(f"Calling LLM for text cleanup with model: {self.model}")
        response = litellm.completion(
            model=self.model,
            messages=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": text},
            ],
            max_tokens=1500,
            temperature=0.3,
        )
        return (response.choices[0].message.content or "").strip()


class PrayerTextCleaner:
    """Cleanup stage with a tri-state availability check."""

    def __init__(
        self,
        rewriter: Optional[TextRewriter],
        user_enabled: bool = True,
        locale: Optional[str] = None,
    ) -> None:
        self.rewriter = rewriter
        self.user_enabled = user_enabled
        self.locale = locale

    def availability(self) -> AIAvailability:
        if not self.user_enabled:
            return AIAvailability(
                AIAvailabilityStatus.USER_DISABLED,
                t("ai.unavailable.user_disabled", self.locale),
            )
        if self.rewriter is None:
            return AIAvailability(
                AIAvailabilityStatus.UNAVAILABLE, t("ai.unavailable.no_model", self.locale)
            )
        if not self.rewriter.is_available():
            return AIAvailability(
                AIAvailabilityStatus.UNAVAILABLE,
                t("ai.unavailable.missing_credentials", self.locale),
            )
        return AIAvailability(AIAvailabilityStatus.AVAILABLE)

    async def cleanup(self, text: str) -> str:
        """Return a cleaned-up version of *text*.

        Raises:
            EmptyInput: text is blank
            CleanupNotAvailable: the feature is off or the model is unusable
            SummarizationFailed: the model call failed or returned nothing
        """
        if not text or not text.strip():
            raise EmptyInput()

        availability = self.availability()
        if not availability.is_available:
            raise CleanupNotAvailable(availability.reason or availability.status.value)

        with PipelineLogContext("ai_cleanup", input_chars=len(text)):
            try:
                result = await asyncio.to_thread(
                    self.rewriter.rewrite, text.strip(), CLEANUP_INSTRUCTIONS
                )
            except Exception as e:
                logger.error(f"AI cleanup failed: {e}")
                raise SummarizationFailed(e) from e

            if not result or not result.strip():
                raise SummarizationFailed(ValueError("Model returned an empty response"))
            return result.strip()
