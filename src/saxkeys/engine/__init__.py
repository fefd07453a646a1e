"""
Audio Engine Module

Sound sources (oscillator and FluidSynth sampler), the output bus they
connect to, and the sample-clock scheduler used for release grace periods.
"""

from .base import SynthEngine
from .fluidsynth_engine import FluidSynthSampler
from .oscillator import Envelope, OscillatorEngine, OscillatorType
from .output import AudioOutput
from .scheduler import FrameScheduler, ScheduledEvent

__all__ = [
    'SynthEngine',
    'FluidSynthSampler',
    'Envelope',
    'OscillatorEngine',
    'OscillatorType',
    'AudioOutput',
    'FrameScheduler',
    'ScheduledEvent',
]
