"""
Oscillator Palette

One selectable entry per oscillator type. Which entry is lit is read from the
lifecycle manager every time, never stored here.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..engine.base import SynthEngine
from ..engine.oscillator import OscillatorType
from ..tui import Color, styled
from .lifecycle import SynthLifecycleManager


@dataclass(frozen=True)
class PaletteEntry:
    title: str
    oscillator_type: OscillatorType


PALETTE_ENTRIES: Tuple[PaletteEntry, ...] = tuple(
    PaletteEntry(title=t.value, oscillator_type=t) for t in OscillatorType
)


class OscillatorPalette:
    """Row of oscillator selectors bound to a lifecycle manager"""

    def __init__(self, manager: SynthLifecycleManager, entry_width: int = 96,
                 entries: Tuple[PaletteEntry, ...] = PALETTE_ENTRIES):
        self.manager = manager
        self.entry_width = entry_width
        self.entries = entries

    def is_active(self, entry: PaletteEntry) -> bool:
        return self.manager.active_type == entry.oscillator_type

    @property
    def active_entry(self) -> Optional[PaletteEntry]:
        for entry in self.entries:
            if self.is_active(entry):
                return entry
        return None

    def select(self, entry: PaletteEntry) -> SynthEngine:
        return self.manager.swap(entry.oscillator_type)

    def entry_at(self, x: float) -> Optional[PaletteEntry]:
        if x < 0:
            return None
        index = int(x // self.entry_width)
        if index < len(self.entries):
            return self.entries[index]
        return None

    @property
    def width(self) -> int:
        return self.entry_width * len(self.entries)

    def render(self) -> str:
        cells = []
        for entry in self.entries:
            if self.is_active(entry):
                cells.append(styled(f"[{entry.title}]", Color.BOLD, Color.WHITE))
            else:
                cells.append(styled(f" {entry.title} ", Color.GRAY))
        return " ".join(cells)

    def titles(self) -> List[str]:
        return [e.title for e in self.entries]
