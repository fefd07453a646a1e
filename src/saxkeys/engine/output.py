"""
Audio Output Bus

The destination engines connect to. A sounddevice stream pulls mixed blocks
from here; the same lock guards the source list and rendering, so a swap done
inside transaction() is atomic from the audio thread's point of view.
"""

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

import numpy as np

try:
    import sounddevice as sd
except (ImportError, OSError):
    # OSError: PortAudio shared library missing
    sd = None

if TYPE_CHECKING:
    from .base import SynthEngine

log = logging.getLogger(__name__)


class AudioOutput:
    """Mixing bus backed by a sounddevice OutputStream"""

    def __init__(self, sample_rate: int = 48000, block_size: int = 256,
                 channels: int = 2, device: Optional[str] = None):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.channels = channels
        self.device = device
        self._sources: List['SynthEngine'] = []
        self._lock = threading.RLock()
        self._stream = None

    def attach(self, source: 'SynthEngine'):
        with self._lock:
            if source not in self._sources:
                self._sources.append(source)
                log.debug(f"Attached {source!r}")

    def detach(self, source: 'SynthEngine'):
        with self._lock:
            if source in self._sources:
                self._sources.remove(source)
                log.debug(f"Detached {source!r}")

    @property
    def sources(self) -> Tuple['SynthEngine', ...]:
        with self._lock:
            return tuple(self._sources)

    def is_connected(self, source: 'SynthEngine') -> bool:
        with self._lock:
            return source in self._sources

    @contextmanager
    def transaction(self) -> Iterator['AudioOutput']:
        """Hold the bus so no block is rendered mid-change"""
        with self._lock:
            yield self

    def render(self, frames: int) -> np.ndarray:
        """Mix all connected sources into a (frames, channels) float32 block"""
        mix = np.zeros((frames, 2), dtype=np.float32)
        with self._lock:
            for source in self._sources:
                mix += source.render(frames)
        np.tanh(mix, out=mix)
        if self.channels == 1:
            return mix.mean(axis=1, keepdims=True)
        if self.channels > 2:
            out = np.zeros((frames, self.channels), dtype=np.float32)
            out[:, :2] = mix
            return out
        return mix

    def _callback(self, outdata: np.ndarray, frames: int, time_info, status):
        if status:
            log.debug(f"Stream status: {status}")
        outdata[:] = self.render(frames)

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self) -> bool:
        """Open and start the output stream"""
        if sd is None:
            log.error("sounddevice not available (pip install sounddevice, needs PortAudio)")
            return False
        if self._stream is not None:
            return True

        try:
            self._stream = sd.OutputStream(
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                channels=self.channels,
                dtype='float32',
                device=self.device,
                callback=self._callback,
            )
            self._stream.start()
            log.info(f"✓ Audio output started ({self.sample_rate} Hz, block {self.block_size})")
            return True
        except Exception as e:
            log.error(f"Audio output failed to start: {e}")
            self._stream = None
            return False

    def stop(self):
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None
            log.info("Audio output stopped")
