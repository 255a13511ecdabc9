"""
Speech capability ports: text-to-speech playback and speech capture
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class SpeechResult:
    """Completion event of one capture: a final transcript or an error code"""

    transcript: str | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None and self.transcript is not None


@dataclass(frozen=True)
class SpeechErrorInfo:
    message: str
    offer_manual_input: bool


class TextToSpeech(Protocol):
    def speak(self, text: str, locale: str) -> None: ...


class SpeechRecognizer(Protocol):
    def start(self, locale: str, on_result: Callable[[SpeechResult], None]) -> None: ...

    def cancel(self) -> None: ...


class SilentSpeech:
    """TextToSpeech that only logs, for consoles and tests"""

    def __init__(self):
        self.spoken: list[tuple[str, str]] = []

    def speak(self, text: str, locale: str) -> None:
        logger.debug(f"speak [{locale}]: {text}")
        self.spoken.append((text, locale))


def speak_safely(tts: TextToSpeech | None, text: str | None, locale: str) -> bool:
    """Speak text unless it is empty or a warning message"""
    if tts is None or not text or text.startswith("⚠️"):
        return False
    try:
        tts.speak(text, locale)
    except Exception as e:
        logger.warning(f"Speech playback failed: {e}")
        return False
    return True


def describe_speech_error(error_code: str) -> SpeechErrorInfo:
    """User-facing message for a capture error, and whether to offer typing instead"""
    if error_code in ("not-allowed", "service-not-allowed"):
        return SpeechErrorInfo("🚫 Microphone access is blocked.", True)
    if error_code == "no-speech":
        return SpeechErrorInfo("🔇 Nothing heard. Try speaking louder.", False)
    if error_code == UNSUPPORTED:
        return SpeechErrorInfo("Speech recognition is not available on this device.", True)
    return SpeechErrorInfo(f"⚠️ Microphone error: {error_code}", True)


class SpeechCapture:
    """Toggle-driven wrapper around a SpeechRecognizer.

    At most one activation is live. Cancelling discards its result, and a
    result arriving for an earlier activation is ignored.
    """

    def __init__(self, recognizer: SpeechRecognizer | None, locale: str = "en-US"):
        self.recognizer = recognizer
        self.locale = locale
        self.is_recording = False
        self._activation = 0

    def toggle(self, on_result: Callable[[SpeechResult], None]) -> bool:
        """Start capturing, or cancel the running capture; returns is_recording"""
        if self.is_recording:
            self.cancel()
            return False

        if self.recognizer is None:
            on_result(SpeechResult(error_code=UNSUPPORTED))
            return False

        self._activation += 1
        activation = self._activation

        def deliver(result: SpeechResult) -> None:
            if activation != self._activation or not self.is_recording:
                logger.debug("Discarding speech result from a cancelled capture")
                return
            self.is_recording = False
            on_result(result)

        self.is_recording = True
        try:
            self.recognizer.start(self.locale, deliver)
        except Exception as e:
            logger.error(f"Speech capture failed to start: {e}")
            self.is_recording = False
            on_result(SpeechResult(error_code="start-failed"))
        return self.is_recording

    def cancel(self) -> None:
        if not self.is_recording:
            return
        self.is_recording = False
        self._activation += 1
        if self.recognizer is not None:
            self.recognizer.cancel()
