"""
Saxophone Instrument

Keys across several octaves plus an oscillator palette underneath. Pointer
gestures on a key sound the active engine; clicking a palette entry swaps it.

Surface layout (pixels, default geometry):

    y 0..128     keys (accidentals 0..64, stacked above naturals)
    y 144..176   oscillator palette, 96px per entry
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import FullConfig
from ..engine.base import SynthEngine
from ..engine.oscillator import OscillatorEngine, OscillatorType
from ..engine.output import AudioOutput
from ..layout import (
    KeyDescriptor, KeyPlacement, OctaveRange, ScaleStep,
    compute_keys, hit_test, layout_width, place_keys,
)
from ..production.error_handler import ProductionErrorHandler, SynthSwapError
from ..production.resource_manager import ProductionResourceManager
from ..tui import Color
from .descriptor import InstrumentDescriptor, InstrumentRenderer
from .gestures import GestureBinding, bind_keys
from .lifecycle import EngineFactory, SynthLifecycleManager
from .palette import OscillatorPalette, PaletteEntry

log = logging.getLogger(__name__)

PALETTE_GAP = 16
CELL_PX = 8


class Saxophone(InstrumentRenderer):
    """Saxophone keyboard component"""

    def __init__(self, output: AudioOutput, config: Optional[FullConfig] = None,
                 sampler: Optional[SynthEngine] = None,
                 error_handler: Optional[ProductionErrorHandler] = None,
                 engine_factory: Optional[EngineFactory] = None):
        self.output = output
        self.config = config or FullConfig()
        self.sampler = sampler
        self.error_handler = error_handler or ProductionErrorHandler()
        self.engine_factory = engine_factory or self._build_engine
        self.resources = ProductionResourceManager()

        self.octaves: OctaveRange = self.config.octave_range()
        self.scale: List[ScaleStep] = self.config.scale_steps()
        self.steps_per_octave = self.config.keyboard.steps_per_octave
        self.geometry = self.config.key_geometry()
        self.grace = self.config.release_grace()

        self.manager: Optional[SynthLifecycleManager] = None
        self.palette: Optional[OscillatorPalette] = None
        self.keys: List[KeyDescriptor] = []
        self.placements: List[KeyPlacement] = []
        self.bindings: Dict[str, GestureBinding] = {}
        self._held: Dict[int, GestureBinding] = {}
        self.mounted = False

    def _build_engine(self, oscillator_type: OscillatorType) -> SynthEngine:
        return OscillatorEngine(
            oscillator_type,
            sample_rate=self.output.sample_rate,
            envelope=self.config.envelope(),
            volume=self.config.synth.volume,
        )

    # -- lifecycle --------------------------------------------------------

    def mount(self):
        if self.mounted:
            return

        manager = SynthLifecycleManager(self.output, self.engine_factory, self.error_handler)
        if self.sampler is not None:
            manager.adopt(self.sampler, owned=False)
        else:
            manager.swap(self.config.default_oscillator())

        self.manager = manager
        self.palette = OscillatorPalette(manager, self.config.geometry.palette_entry_width)
        self.resources.register_resource('synth_lifecycle', manager, manager.close)
        self._relayout()
        self.mounted = True
        log.info(f"Saxophone mounted: octaves {self.octaves.start}-{self.octaves.end}, {len(self.keys)} keys")

    def unmount(self):
        if not self.mounted:
            return

        for pointer in list(self._held):
            self.pointer_up(pointer)

        results = self.resources.cleanup_all()
        failed = [name for name, ok in results.items() if not ok]
        if failed:
            log.warning(f"Resources failed to clean up: {', '.join(failed)}")

        self.manager = None
        self.palette = None
        self.bindings = {}
        self.mounted = False
        log.info("Saxophone unmounted")

    def current_engine(self) -> Optional[SynthEngine]:
        return self.manager.active if self.manager is not None else None

    # -- layout -----------------------------------------------------------

    def set_octaves(self, octaves: OctaveRange):
        compute_keys(octaves, self.scale, self.steps_per_octave)
        self.octaves = octaves
        self._relayout()

    def set_scale(self, scale: Sequence[ScaleStep]):
        compute_keys(self.octaves, scale, self.steps_per_octave)
        self.scale = list(scale)
        self._relayout()

    def _relayout(self):
        self.keys = compute_keys(self.octaves, self.scale, self.steps_per_octave)
        self.placements = place_keys(self.keys, self.geometry)
        self.bindings = bind_keys(self.keys, self.current_engine, self.grace)

    @property
    def palette_top(self) -> int:
        return self.geometry.natural_height + PALETTE_GAP

    @property
    def size(self) -> Tuple[int, int]:
        """Surface (width, height) in pixels"""
        palette_width = self.palette.width if self.palette else 0
        width = max(layout_width(self.placements), palette_width)
        return int(math.ceil(width)), self.palette_top + self.config.geometry.palette_height

    # -- pointer ----------------------------------------------------------

    def pointer_down(self, x: float, y: float, pointer: int = 0) -> Optional[KeyDescriptor]:
        """Press at a surface position; returns the key pressed, if any"""
        if not self.mounted:
            return None
        if pointer in self._held:
            self.pointer_up(pointer)

        placement = hit_test(self.placements, x, y)
        if placement is not None:
            binding = self.bindings[placement.key.identifier]
            binding.on_press()
            self._held[pointer] = binding
            return placement.key

        entry = self._palette_hit(x, y)
        if entry is not None:
            self.select_oscillator(entry)
        return None

    def pointer_up(self, pointer: int = 0) -> Optional[KeyDescriptor]:
        binding = self._held.pop(pointer, None)
        if binding is None:
            return None
        binding.on_release()
        return binding.key

    def _palette_hit(self, x: float, y: float) -> Optional[PaletteEntry]:
        if self.palette is None:
            return None
        if not self.palette_top <= y < self.palette_top + self.config.geometry.palette_height:
            return None
        return self.palette.entry_at(x)

    def select_oscillator(self, entry: PaletteEntry) -> bool:
        try:
            self.palette.select(entry)
            return True
        except SynthSwapError as e:
            # Already reported by the lifecycle manager; the old synth keeps playing
            log.warning(f"Oscillator not changed: {e}")
            return False

    @property
    def held_keys(self) -> List[KeyDescriptor]:
        return [b.key for b in self._held.values()]

    # -- rendering --------------------------------------------------------

    def render(self) -> List[str]:
        width = int(math.ceil(layout_width(self.placements) / CELL_PX))
        held = {key.identifier for key in self.held_keys}
        top = [(' ', '')] * width
        bottom = [(' ', '')] * width

        for placement in self.placements:
            start = int(placement.left // CELL_PX)
            cells = max(1, placement.width // CELL_PX)
            is_held = placement.key.identifier in held

            if placement.key.is_accidental:
                style = Color.BG_VIOLET if is_held else Color.BG_BLACK + Color.GRAY
                for col in range(start, min(start + cells, width)):
                    top[col] = (' ', style)
            else:
                style = (Color.BG_TURQUOISE + Color.BLACK + Color.BOLD) if is_held \
                    else (Color.BG_DARK + Color.WHITE)
                label = placement.key.identifier.ljust(cells - 1)[:cells - 1] + '│'
                for offset, char in enumerate(label):
                    if start + offset < width:
                        bottom[start + offset] = (char, style)

        lines = [_join_cells(top), _join_cells(bottom)]
        if self.palette is not None:
            lines.append(self.palette.render())
        return lines


def _join_cells(cells: Sequence[Tuple[str, str]]) -> str:
    """Merge runs of equally styled cells into one escape sequence each"""
    out = []
    run_style = None
    for char, style in cells:
        if style != run_style:
            if run_style:
                out.append(Color.RESET)
            if style:
                out.append(style)
            run_style = style
        out.append(char)
    if run_style:
        out.append(Color.RESET)
    return ''.join(out)


SAXOPHONE = InstrumentDescriptor('Saxophone', Saxophone)
