"""SpeechRecognizer port -- abstracts on-device speech to text."""

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class SpeechRecognizer(Protocol):
    async def request_authorization(self) -> bool: ...

    async def request_microphone_access(self) -> bool: ...

    async def start(self, on_partial: Callable[[str], None]) -> None:
        """Begin recognition; *on_partial* receives the running transcript."""
        ...

    async def stop(self) -> str:
        """Stop recognition and return the final transcript."""
        ...
