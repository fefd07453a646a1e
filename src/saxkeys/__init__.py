"""
SaxKeys - Saxophone Keyboard Instrument
=======================================

A playable keyboard component: keys laid out across octaves from a sparse
scale, a palette that swaps the synth behind them, and the audio engines and
pointer input that make it sound.

Layout: layout.py, notes.py
Instrument: instrument/
Audio: engine/
Production features: production/
Configuration: config.py
"""

__version__ = "1.0.0"
__description__ = "Saxophone keyboard instrument with swappable synth engines"

__all__ = [
    'Saxophone',
    'SAXOPHONE',
    'AudioOutput',
    'FluidSynthSampler',
    'OscillatorType',
    'load_config',
    'save_config',
    'create_default_config',
    'setup_logging',
]

from .config import create_default_config, load_config, save_config
from .engine import AudioOutput, FluidSynthSampler, OscillatorType
from .instrument import SAXOPHONE, Saxophone
from .production import setup_logging
