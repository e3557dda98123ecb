"""Ports for the text recognition and text rewriting engines.

Both engines are blocking; callers run them in a worker thread.
"""

from typing import List, Protocol, Sequence, runtime_checkable


@runtime_checkable
class TextRecognizer(Protocol):
    """Recognizes printed or handwritten text in an image."""

    def recognize(self, image: object, languages: Sequence[str]) -> List[str]:
        """Return the best candidate string for each detected line, in order."""
        ...


@runtime_checkable
class TextRewriter(Protocol):
    """Language model that rewrites text following instructions."""

    def is_available(self) -> bool:
        """Whether the model can be called right now."""
        ...

    def rewrite(self, text: str, instructions: str) -> str: ...
