"""
Oscillator Palette Tests
"""

import dataclasses

import pytest

from conftest import SpyEngine, SpyFactory
from saxkeys.engine.oscillator import OscillatorType
from saxkeys.instrument.lifecycle import SynthLifecycleManager
from saxkeys.instrument.palette import PALETTE_ENTRIES, OscillatorPalette, PaletteEntry
from saxkeys.tui import strip_ansi


@pytest.fixture
def palette(output, factory):
    manager = SynthLifecycleManager(output, factory)
    return OscillatorPalette(manager, entry_width=96)


def test_entries_cover_every_type():
    assert [e.oscillator_type for e in PALETTE_ENTRIES] == list(OscillatorType)
    assert PALETTE_ENTRIES[0] == PaletteEntry("sine", OscillatorType.SINE)


def test_entry_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        PALETTE_ENTRIES[0].title = "cosine"


def test_nothing_active_before_first_swap(palette):
    assert palette.active_entry is None
    assert not any(palette.is_active(e) for e in PALETTE_ENTRIES)


def test_select_swaps_and_projects(palette):
    square = PALETTE_ENTRIES[2]
    engine = palette.select(square)

    assert engine.oscillator_type is OscillatorType.SQUARE
    assert palette.active_entry == square
    assert [palette.is_active(e) for e in PALETTE_ENTRIES].count(True) == 1


def test_projection_follows_manager(output):
    manager = SynthLifecycleManager(output, SpyFactory())
    palette = OscillatorPalette(manager)

    manager.swap(OscillatorType.AMTRIANGLE)
    assert palette.active_entry.title == "amtriangle"

    manager.adopt(SpyEngine())
    assert palette.active_entry is None


def test_entry_at(palette):
    assert palette.entry_at(0).title == "sine"
    assert palette.entry_at(95.9).title == "sine"
    assert palette.entry_at(96).title == "sawtooth"
    assert palette.entry_at(palette.width - 1).title == "amtriangle"
    assert palette.entry_at(palette.width) is None
    assert palette.entry_at(-5) is None


def test_render_marks_active(palette):
    palette.select(PALETTE_ENTRIES[1])
    text = strip_ansi(palette.render())

    assert "[sawtooth]" in text
    assert " sine " in text
    assert text.count("[") == 1
    assert palette.titles()[:2] == ["sine", "sawtooth"]
