import logging
import queue
import threading
from typing import List, Optional

import pyttsx3

from .messages import FeedbackItem, Severity

# --- Logger Setup ---
logger = logging.getLogger("VoiceFeedback")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


class VoiceFeedback:
    """Spoken feedback for exercise form correction."""

    def __init__(self, rate: int = 150, volume: float = 1.0, engine=None,
                 cooldown: float = 4.0, debounce_frames: int = 2):
        """
        Initialize the voice feedback system.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            engine: Text-to-speech engine; a pyttsx3 engine is created when omitted
            cooldown: Minimum seconds between two spoken corrections
            debounce_frames: Frames a correction must persist before it is spoken
        """
        self.engine = engine if engine is not None else pyttsx3.init()
        self.engine.setProperty('rate', rate)
        self.engine.setProperty('volume', volume)

        self.feedback_cooldown = cooldown
        self._violation_debounce_threshold = debounce_frames
        self.last_feedback_time: Optional[float] = None
        self._last_feedback_message: Optional[str] = None
        self._last_violation: Optional[str] = None
        self._violation_persist_count = 0

        self._tts_queue = queue.Queue()
        self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
        self._tts_thread.start()

    def generate_feedback(self, feedback: List[FeedbackItem], rep_detected: bool, now: float) -> Optional[str]:
        """
        Pick the message to speak for the current frame, if any.

        Args:
            feedback: Feedback items of the current frame, highest priority first
            rep_detected: Whether a rep was completed on this frame
            now: Frame time in seconds

        Returns:
            Message to speak, or None to stay quiet
        """
        # Rep announcements are never held back by the cooldown
        if rep_detected and feedback and feedback[0].severity == Severity.SUCCESS:
            return self._accept(feedback[0].message, now)

        violation = next((item.message for item in feedback if item.severity != Severity.SUCCESS), None)
        if violation is None:
            self._violation_persist_count = 0
            self._last_violation = None
            return None

        # Debounce: only speak if the violation persists
        if violation == self._last_violation:
            self._violation_persist_count += 1
        else:
            self._violation_persist_count = 1
            self._last_violation = violation
        if self._violation_persist_count < self._violation_debounce_threshold:
            return None

        if self.last_feedback_time is not None and now - self.last_feedback_time < self.feedback_cooldown:
            return None
        if violation == self._last_feedback_message:
            return None
        return self._accept(violation, now)

    def _accept(self, message: str, now: float) -> str:
        self._last_feedback_message = message
        self.last_feedback_time = now
        return message

    def speak(self, message: str) -> None:
        """
        Queue the given message to be spoken by the background TTS thread.

        Args:
            message: Message to speak
        """
        self._tts_queue.put(message)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the TTS thread after the queued messages are spoken."""
        self._tts_queue.put(None)
        self._tts_thread.join(timeout)

    def _tts_worker(self):
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break
            try:
                self.engine.say(msg)
                self.engine.runAndWait()
            except RuntimeError as e:
                logger.warning(f"[VOICE] Could not speak '{msg}': {e}")
