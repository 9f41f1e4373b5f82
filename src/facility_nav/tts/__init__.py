from .speech import SpeechSink, init_tts

__all__ = ["SpeechSink", "init_tts"]
