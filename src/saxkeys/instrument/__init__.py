"""Saxophone instrument component"""

from .descriptor import InstrumentDescriptor, InstrumentRenderer
from .gestures import GestureBinding, bind_keys
from .lifecycle import SynthLifecycleManager
from .palette import OscillatorPalette, PaletteEntry, PALETTE_ENTRIES
from .saxophone import Saxophone, SAXOPHONE

__all__ = [
    'InstrumentDescriptor', 'InstrumentRenderer',
    'GestureBinding', 'bind_keys',
    'SynthLifecycleManager',
    'OscillatorPalette', 'PaletteEntry', 'PALETTE_ENTRIES',
    'Saxophone', 'SAXOPHONE',
]
