"""
Oscillator Engine

Polyphonic numpy synth with basic, FM and AM waveforms and an ADSR envelope.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import numpy as np

from ..notes import midi_to_frequency
from .base import SynthEngine

log = logging.getLogger(__name__)


class OscillatorType(str, Enum):
    """Supported waveform shapes"""
    SINE = "sine"
    SAWTOOTH = "sawtooth"
    SQUARE = "square"
    TRIANGLE = "triangle"
    FMSINE = "fmsine"
    FMSAWTOOTH = "fmsawtooth"
    FMTRIANGLE = "fmtriangle"
    AMSINE = "amsine"
    AMSAWTOOTH = "amsawtooth"
    AMTRIANGLE = "amtriangle"

    @property
    def modulation(self) -> Optional[str]:
        """'fm', 'am' or None"""
        prefix = self.value[:2]
        return prefix if prefix in ('fm', 'am') else None

    @property
    def carrier(self) -> str:
        return self.value[2:] if self.modulation else self.value


# Waveforms over phase measured in cycles
def sine_wave(phase: np.ndarray) -> np.ndarray:
    return np.sin(2 * np.pi * phase)


def sawtooth_wave(phase: np.ndarray) -> np.ndarray:
    return 2.0 * (phase % 1.0) - 1.0


def square_wave(phase: np.ndarray) -> np.ndarray:
    return np.where((phase % 1.0) < 0.5, 1.0, -1.0)


def triangle_wave(phase: np.ndarray) -> np.ndarray:
    return 1.0 - 4.0 * np.abs((phase % 1.0) - 0.5)


WAVEFORMS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    'sine': sine_wave,
    'sawtooth': sawtooth_wave,
    'square': square_wave,
    'triangle': triangle_wave,
}

HARMONICITY = 1.0
MODULATION_INDEX = 2.0


@dataclass(frozen=True)
class Envelope:
    """ADSR times in seconds, sustain as a level"""
    attack: float = 0.005
    decay: float = 0.1
    sustain: float = 0.3
    release: float = 1.0

    def held(self, t: np.ndarray, start_level: float = 0.0) -> np.ndarray:
        """Level while the key is held, t = seconds since note on

        The attack ramps from start_level so a re-attacked voice keeps
        its current level instead of dropping to silence.
        """
        attack = max(self.attack, 1e-6)
        decay = max(self.decay, 1e-6)
        rising = start_level + (1.0 - start_level) * np.clip(t / attack, 0.0, 1.0)
        falling = 1.0 - (1.0 - self.sustain) * np.clip((t - attack) / decay, 0.0, 1.0)
        return np.where(t < attack, rising, falling)

    def released(self, t: np.ndarray, start_level: float) -> np.ndarray:
        """Level after release, t = seconds since note off"""
        release = max(self.release, 1e-6)
        return start_level * np.clip(1.0 - t / release, 0.0, 1.0)


class Voice:
    """One sounding note"""

    def __init__(self, note: int, sample_rate: int):
        self.note = note
        self.frequency = midi_to_frequency(note)
        self.increment = self.frequency / sample_rate
        self.phase = 0.0
        self.mod_phase = 0.0
        self.age = 0
        self.released_at: Optional[int] = None
        self.release_level = 0.0
        self.attack_level = 0.0
        self.level = 0.0

    def retrigger(self):
        self.attack_level = self.level
        self.age = 0
        self.released_at = None


class OscillatorEngine(SynthEngine):
    """Oscillator-backed engine, ready as soon as it is constructed"""

    def __init__(self, oscillator_type: OscillatorType = OscillatorType.SINE,
                 sample_rate: int = 48000, envelope: Optional[Envelope] = None,
                 volume: float = 0.2):
        super().__init__(sample_rate)
        self.oscillator_type = OscillatorType(oscillator_type)
        self.envelope = envelope or Envelope()
        self.volume = volume
        self.voices: Dict[int, Voice] = {}
        self._wave = WAVEFORMS[self.oscillator_type.carrier]

    def __repr__(self) -> str:
        return f"OscillatorEngine({self.oscillator_type.value})"

    @property
    def ready(self) -> bool:
        return True

    @property
    def active_notes(self):
        return sorted(n for n, v in self.voices.items() if v.released_at is None)

    def _note_on(self, note: int):
        voice = self.voices.get(note)
        if voice is None:
            self.voices[note] = Voice(note, self.sample_rate)
        else:
            voice.retrigger()

    def _note_off(self, note: int):
        voice = self.voices.get(note)
        if voice is not None and voice.released_at is None:
            voice.released_at = voice.age
            voice.release_level = voice.level

    def all_notes_off(self):
        self.voices.clear()

    def _generate(self, frames: int) -> np.ndarray:
        mono = np.zeros(frames, dtype=np.float64)
        offsets = np.arange(frames)
        finished = []

        for note, voice in self.voices.items():
            phases = voice.phase + offsets * voice.increment
            signal = self._oscillate(voice, phases, offsets)

            ages = (voice.age + offsets) / self.sample_rate
            if voice.released_at is None:
                env = self.envelope.held(ages, voice.attack_level)
            else:
                since = (voice.age - voice.released_at + offsets) / self.sample_rate
                env = self.envelope.released(since, voice.release_level)
                if since[-1] >= self.envelope.release:
                    finished.append(note)

            mono += signal * env
            voice.level = float(env[-1])
            voice.phase = (voice.phase + frames * voice.increment) % 1.0
            voice.mod_phase = (voice.mod_phase + frames * voice.increment * HARMONICITY) % 1.0
            voice.age += frames

        for note in finished:
            del self.voices[note]

        mono *= self.volume
        return np.repeat(mono.astype(np.float32)[:, None], 2, axis=1)

    def _oscillate(self, voice: Voice, phases: np.ndarray, offsets: np.ndarray) -> np.ndarray:
        modulation = self.oscillator_type.modulation
        if modulation is None:
            return self._wave(phases)

        mod_phases = voice.mod_phase + offsets * voice.increment * HARMONICITY
        modulator = sine_wave(mod_phases)
        if modulation == 'fm':
            return self._wave(phases + MODULATION_INDEX * modulator / (2 * np.pi))
        return self._wave(phases) * (0.5 + 0.5 * modulator)
