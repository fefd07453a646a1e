"""Shared test doubles: spy engines, a spy factory and a recording output bus"""

import numpy as np
import pytest

from saxkeys.engine.base import SynthEngine
from saxkeys.engine.output import AudioOutput


class SpyEngine(SynthEngine):
    """Engine that records note on/off instead of making sound"""

    def __init__(self, oscillator_type=None, sample_rate=48000, ready=True, level=0.0):
        super().__init__(sample_rate)
        self.oscillator_type = oscillator_type
        self.is_ready = ready
        self.level = level
        self.events = []
        self.shutdown_calls = 0

    def __repr__(self):
        name = self.oscillator_type.value if self.oscillator_type else "sampler"
        return f"SpyEngine({name})"

    @property
    def ready(self):
        return self.is_ready

    def _note_on(self, note):
        self.events.append(('on', note))

    def _note_off(self, note):
        self.events.append(('off', note))

    def all_notes_off(self):
        self.events.append(('all_off', None))

    def _generate(self, frames):
        return np.full((frames, 2), self.level, dtype=np.float32)

    def shutdown(self):
        self.shutdown_calls += 1
        super().shutdown()


class SpyFactory:
    """Engine factory that can be told to fail for some oscillator types"""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.built = []

    def __call__(self, oscillator_type):
        if oscillator_type in self.fail_on:
            raise RuntimeError(f"cannot build {oscillator_type.value}")
        engine = SpyEngine(oscillator_type)
        self.built.append(engine)
        return engine


class RecordingOutput(AudioOutput):
    """Output bus that remembers the most sources it ever held at once"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.max_sources = 0
        self.history = []

    def attach(self, source):
        super().attach(source)
        self.history.append(('attach', source))
        self.max_sources = max(self.max_sources, len(self.sources))

    def detach(self, source):
        super().detach(source)
        self.history.append(('detach', source))


@pytest.fixture
def output():
    return RecordingOutput()


@pytest.fixture
def factory():
    return SpyFactory()
