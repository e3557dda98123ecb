"""
Voice dictation for prayer content.

A DictationSession drives a SpeechRecognizer and strips filler words from
the final transcript. Restructuring the text is left to the explicit AI
cleanup step.
"""

import logging
import re
from typing import Callable, List, Optional

from ..domain.ports import SpeechRecognizer
from ..utils.permissions import PermissionGate, ensure_all

logger = logging.getLogger(__name__)

# Filler words to remove (Korean and English)
FILLER_WORDS_KO = [
    r"(?<!\w)어+(?!\w)",
    r"(?<!\w)음+(?!\w)",
    r"(?<!\w)으음+(?!\w)",
    r"(?<!\w)아+(?=\s*(?:,|\.\.\.|…))",
    r"(?<!\w)그+(?=\s*(?:,|\.\.\.|…))",
    r"(?<!\w)저기(?=\s*(?:,|\.\.\.|…))",
    r"(?<!\w)뭐(?=\s*(?:,|\.\.\.|…))",
    r"(?<!\w)이제(?=\s*(?:,|\.\.\.|…))",
]

FILLER_WORDS_EN = [
    r"\bum+\b",
    r"\buh+\b",
    r"\blike\b(?=\s+(?:I|you|he|she|it|we|they|so|um|uh))",  # Only "like" as filler
    r"\byou know\b",
    r"\bI mean\b",
    r"\bso\b(?=\s*,)",  # "so," at start
    r"\bactually\b(?=\s*,)",
    r"\bbasically\b(?=\s*,)",
]


class TranscriptCorrector:
    """Removes filler words from a spoken transcript."""

    def __init__(self, extra_fillers: Optional[List[str]] = None):
        fillers = FILLER_WORDS_KO + FILLER_WORDS_EN + list(extra_fillers or [])
        self.filler_pattern = re.compile("|".join(fillers), re.IGNORECASE)

    def correct_text(self, text: str) -> str:
        if not text:
            return text

        result = self.filler_pattern.sub("", text)

        # Clean up leftover punctuation and spaces
        result = re.sub(r"(?:\s*(?:\.\.\.|…))+", " ", result)
        result = re.sub(r"\s+", " ", result)
        result = re.sub(r"\s+([,.!?])", r"\1", result)
        result = re.sub(r",\s*,", ",", result)
        result = re.sub(r"^[\s,]+", "", result)

        return result.strip()


class DictationSession:
    """One recording: permissions, live partial text, final transcript."""

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        corrector: Optional[TranscriptCorrector] = None,
        speech_gate: Optional[PermissionGate] = None,
        microphone_gate: Optional[PermissionGate] = None,
    ):
        self.recognizer = recognizer
        self.corrector = corrector or TranscriptCorrector()
        self.speech_gate = speech_gate or PermissionGate(
            "speech", recognizer.request_authorization
        )
        self.microphone_gate = microphone_gate or PermissionGate(
            "microphone", recognizer.request_microphone_access
        )
        self.text = ""
        self.is_recording = False
        self._listeners: List[Callable[[str], None]] = []

    def on_text(self, listener: Callable[[str], None]) -> None:
        """Register a callback for partial transcript updates."""
        self._listeners.append(listener)

    async def start(self) -> None:
        """Ask for speech, then microphone access, and begin listening.

        Raises:
            PermissionRequired: the first permission that was denied
        """
        if self.is_recording:
            return

        await ensure_all(self.speech_gate, self.microphone_gate)

        self.text = ""
        await self.recognizer.start(self._handle_partial)
        self.is_recording = True
        logger.info("Dictation started")

    def _handle_partial(self, text: str) -> None:
        self.text = text
        for listener in self._listeners:
            listener(text)

    async def stop(self) -> str:
        """Stop listening and return the transcript without filler words."""
        if not self.is_recording:
            return self.text

        try:
            raw = await self.recognizer.stop()
        finally:
            self.is_recording = False

        self.text = self.corrector.correct_text(raw or self.text)
        logger.info(f"Dictation stopped ({len(self.text)} chars)")
        return self.text
