# speech.py
# Speaks navigation announcements without blocking the position loop.
# Texts are queued and synthesised one at a time on a worker thread.

import logging
import queue
import threading
from typing import Any, Callable, Optional

import pyttsx3

logger = logging.getLogger(__name__)

PREFERRED_VOICES = ["Samantha", "Victoria", "Ava", "Moira", "Karen", "Tessa", "Kathy"]


def init_tts(rate: int = 150) -> Any:
    """Create a pyttsx3 engine, picking a preferred voice when one is installed."""
    engine = pyttsx3.init()
    engine.setProperty("rate", rate)
    engine.setProperty("volume", 1.0)

    for v in engine.getProperty("voices"):
        if any(p.lower() in (v.name or "").lower() for p in PREFERRED_VOICES):
            engine.setProperty("voice", v.id)
            break

    return engine


class SpeechSink:
    """
    One announcement, one utterance, in arrival order.

    The engine is created lazily on the worker thread; pass engine_factory to
    swap pyttsx3 for something else (tests use a recorder).

    Usage:
        sink = SpeechSink(rate=150)
        sink.speak("Turn left")
        ...
        sink.close()
    """

    def __init__(
        self,
        rate: int = 150,
        engine_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._factory = engine_factory or (lambda: init_tts(rate))
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._thread = threading.Thread(target=self._worker, name="tts", daemon=True)
        self._closed = False
        self._thread.start()

    def __call__(self, text: str) -> None:
        self.speak(text)

    def speak(self, text: str) -> None:
        text = (text or "").strip()
        if not text or self._closed:
            return
        self._queue.put(text)

    def wait(self) -> None:
        """Block until everything queued so far has been spoken."""
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        """Finish queued speech, then stop the worker."""
        if self._closed:
            return
        self._closed = True
        self._queue.join()
        self._queue.put(None)
        self._thread.join(timeout=timeout)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        engine = None
        while True:
            text = self._queue.get()
            try:
                if text is None:
                    break
                if engine is None:
                    engine = self._factory()
                engine.say(text)
                engine.runAndWait()
            except Exception as e:
                logger.error(f"TTS error: {e}")
            finally:
                self._queue.task_done()
