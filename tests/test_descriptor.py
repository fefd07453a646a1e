"""
Instrument Descriptor Tests
"""

import dataclasses

import pytest

from saxkeys.instrument import SAXOPHONE, InstrumentDescriptor, InstrumentRenderer, Saxophone


def test_saxophone_descriptor():
    assert SAXOPHONE.name == "Saxophone"
    assert SAXOPHONE.renderer is Saxophone
    assert issubclass(SAXOPHONE.renderer, InstrumentRenderer)


def test_descriptor_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        SAXOPHONE.name = "Clarinet"


def test_renderer_must_implement_render():
    class Silent(InstrumentRenderer):
        pass

    with pytest.raises(TypeError):
        Silent()

    class Blank(InstrumentRenderer):
        def render(self):
            return []

    descriptor = InstrumentDescriptor("Blank", Blank)
    assert descriptor.renderer().render() == []
