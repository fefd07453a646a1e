"""
FluidSynth Sampler Engine

Sample-backed engine: renders a SoundFont through FluidSynth and hands the
audio to the output bus. The SoundFont loads in the background; until it is
in, attack/release calls are dropped.
"""

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

try:
    import fluidsynth
except ImportError:
    fluidsynth = None

from ..production.error_handler import ErrorSeverity, ProductionErrorHandler
from .base import SynthEngine

if TYPE_CHECKING:
    from ..config import FullConfig

log = logging.getLogger(__name__)

ALTO_SAX_PROGRAM = 65


class FluidSynthSampler(SynthEngine):
    """FluidSynth wrapper playing one GM program"""

    def __init__(self, sample_rate: int = 48000, program: int = ALTO_SAX_PROGRAM,
                 bank: int = 0, gain: float = 0.5, velocity: int = 100,
                 error_handler: Optional[ProductionErrorHandler] = None):
        super().__init__(sample_rate)
        self.program = program
        self.bank = bank
        self.gain = gain
        self.velocity = velocity
        self.channel = 0
        self.error_handler = error_handler or ProductionErrorHandler()
        self.fs = None
        self.sfid: int = -1
        self.soundfont: Optional[Path] = None
        self._ready = threading.Event()
        self._loader: Optional[threading.Thread] = None

    def __repr__(self) -> str:
        name = self.soundfont.name if self.soundfont else "unloaded"
        return f"FluidSynthSampler({name}, program={self.program})"

    @classmethod
    def from_config(cls, config: 'FullConfig',
                    error_handler: Optional[ProductionErrorHandler] = None) -> Optional['FluidSynthSampler']:
        """
        Build the sampler described by the config, or None when disabled

        Starts loading the configured SoundFont in the background.
        """
        settings = config.sampler
        if not settings.enabled:
            return None

        sampler = cls(
            sample_rate=config.audio.sample_rate,
            program=settings.program,
            bank=settings.bank,
            gain=settings.gain,
            error_handler=error_handler,
        )
        if settings.soundfont:
            sampler.load(Path(settings.soundfont).expanduser())
        else:
            log.warning("No sampler.soundfont configured; sampler stays silent")
        return sampler

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def load(self, soundfont_path: Path,
             on_done: Optional[Callable[[bool], None]] = None) -> threading.Thread:
        """Load a SoundFont in a background thread"""
        self._loader = threading.Thread(
            target=self._load_worker,
            args=(Path(soundfont_path), on_done),
            name="soundfont-loader",
            daemon=True,
        )
        self._loader.start()
        return self._loader

    def _load_worker(self, path: Path, on_done: Optional[Callable[[bool], None]]):
        ok = self.load_soundfont(path)
        if on_done is not None:
            on_done(ok)

    def load_soundfont(self, path: Path) -> bool:
        """Load a SoundFont synchronously; failures are reported, not raised"""
        try:
            if fluidsynth is None:
                raise RuntimeError("FluidSynth library not available (pip install pyfluidsynth)")
            if not path.exists():
                raise FileNotFoundError(f"No such file: {path}")

            if self.fs is None:
                self.fs = fluidsynth.Synth(gain=self.gain, samplerate=float(self.sample_rate))

            # Unload previous
            if self.sfid >= 0:
                self._ready.clear()
                self.all_notes_off()
                self.fs.sfunload(self.sfid)
                self.sfid = -1

            log.info(f"Loading: {path.name}")
            sfid = self.fs.sfload(str(path))
            if sfid < 0:
                raise RuntimeError(f"FluidSynth rejected {path.name}")

            self.sfid = sfid
            self.fs.program_select(self.channel, self.sfid, self.bank, self.program)
            self.soundfont = path
            self._ready.set()
            log.info(f"✓ Sampler ready: {path.name} (program {self.program})")
            return True

        except Exception as e:
            self.error_handler.handle_error(
                e, 'sample_load', ErrorSeverity.MEDIUM,
                details={'soundfont': str(path), 'program': self.program}
            )
            return False

    def _note_on(self, note: int):
        self.fs.noteon(self.channel, note, self.velocity)

    def _note_off(self, note: int):
        self.fs.noteoff(self.channel, note)

    def all_notes_off(self):
        if self.fs is not None:
            self.fs.cc(self.channel, 123, 0)
            self.fs.cc(self.channel, 121, 0)

    def _generate(self, frames: int) -> np.ndarray:
        if not self.ready:
            return np.zeros((frames, 2), dtype=np.float32)
        samples = np.asarray(self.fs.get_samples(frames), dtype=np.float32)
        return (samples.reshape(frames, 2) / 32768.0).astype(np.float32)

    def shutdown(self):
        """Shutdown the audio engine"""
        super().shutdown()
        if self._loader is not None and self._loader.is_alive():
            self._loader.join(timeout=5.0)
        if self.fs:
            self.all_notes_off()
            self.fs.delete()
            self.fs = None
        self.sfid = -1
        self._ready.clear()
