"""
Synth Engine Base

Common attack/release/connect behaviour for every engine that can be placed on
the output bus. Subclasses only produce audio and handle raw note on/off.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Dict, Optional

import numpy as np

from ..notes import note_to_midi
from .output import AudioOutput
from .scheduler import FrameScheduler, ScheduledEvent

log = logging.getLogger(__name__)


class SynthEngine(ABC):
    """Playable sound source"""

    # OscillatorType for oscillator-backed engines, None for samplers
    oscillator_type = None

    def __init__(self, sample_rate: int = 48000):
        self.sample_rate = sample_rate
        self.scheduler = FrameScheduler(sample_rate)
        self.destination: Optional[AudioOutput] = None
        self._pending_release: Dict[int, ScheduledEvent] = {}
        self._lock = threading.RLock()

    @property
    @abstractmethod
    def ready(self) -> bool:
        """False while assets are still loading"""

    @abstractmethod
    def _note_on(self, note: int):
        pass

    @abstractmethod
    def _note_off(self, note: int):
        pass

    @abstractmethod
    def _generate(self, frames: int) -> np.ndarray:
        """Produce a (frames, 2) float32 block"""

    def all_notes_off(self):
        pass

    def shutdown(self):
        self.disconnect()
        self.scheduler.clear()

    # -- routing ----------------------------------------------------------

    def connect(self, destination: AudioOutput) -> 'SynthEngine':
        if self.destination is not None and self.destination is not destination:
            self.disconnect()
        destination.attach(self)
        self.destination = destination
        return self

    def disconnect(self):
        """Detach from the output; safe to call when already detached"""
        if self.destination is None:
            return
        self.destination.detach(self)
        self.destination = None
        with self._lock:
            for event in self._pending_release.values():
                event.cancel()
            self._pending_release.clear()
        if self.ready:
            self.all_notes_off()

    @property
    def connected(self) -> bool:
        return self.destination is not None

    # -- playing ----------------------------------------------------------

    def attack(self, note_id: str):
        if not self.ready:
            log.debug(f"{self!r} not ready, dropping attack {note_id}")
            return

        note = note_to_midi(note_id)
        with self._lock:
            # A re-press inside the grace period keeps the note sounding
            pending = self._pending_release.pop(note, None)
            if pending is not None:
                pending.cancel()
            self._note_on(note)

    def release(self, note_id: str, grace: timedelta = timedelta(0)):
        if not self.ready:
            log.debug(f"{self!r} not ready, dropping release {note_id}")
            return

        note = note_to_midi(note_id)
        with self._lock:
            previous = self._pending_release.pop(note, None)
            if previous is not None:
                previous.cancel()
            self._pending_release[note] = self.scheduler.schedule(grace, self._finish_release, note)

    def _finish_release(self, note: int):
        with self._lock:
            self._pending_release.pop(note, None)
            self._note_off(note)

    # -- rendering --------------------------------------------------------

    def render(self, frames: int) -> np.ndarray:
        """Render a block, firing scheduled events at their exact frame"""
        out = np.zeros((frames, 2), dtype=np.float32)
        self.scheduler.advance(0)

        pos = 0
        while pos < frames:
            chunk = max(1, self.scheduler.frames_until_next(frames - pos))
            with self._lock:
                out[pos:pos + chunk] = self._generate(chunk)
            pos += chunk
            self.scheduler.advance(chunk)
        return out
