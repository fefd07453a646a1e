"""
Gesture Binding Tests
"""

from datetime import timedelta

from conftest import SpyEngine, SpyFactory
from saxkeys.engine.oscillator import OscillatorType
from saxkeys.instrument.gestures import DEFAULT_GRACE, bind_keys, press, release
from saxkeys.instrument.lifecycle import SynthLifecycleManager
from saxkeys.layout import OctaveRange, SAXOPHONE_SCALE, compute_keys


def _key(identifier):
    keys = compute_keys(OctaveRange(2, 6), SAXOPHONE_SCALE)
    return next(k for k in keys if k.identifier == identifier)


def test_missing_handle_is_noop():
    key = _key("C3")
    press(key, None)
    release(key, None)

    binding = bind_keys([key], lambda: None)["C3"]
    binding.on_press()
    binding.on_release()


def test_press_and_release_reach_engine():
    engine = SpyEngine()
    key = _key("C3")

    press(key, engine)
    assert engine.events == [('on', 48)]

    release(key, engine, timedelta(0))
    engine.render(1)
    assert engine.events[-1] == ('off', 48)


def test_release_uses_grace():
    engine = SpyEngine()
    binding = bind_keys([_key("D3")], lambda: engine)["D3"]

    binding.on_press()
    binding.on_release()

    assert binding.grace == DEFAULT_GRACE
    assert engine.scheduler.pending_count == 1
    grace_frames = engine.scheduler.frames_for(DEFAULT_GRACE)
    engine.render(grace_frames - 1)
    assert ('off', 50) not in engine.events
    engine.render(1)
    assert engine.events[-1] == ('off', 50)


def test_binding_follows_swaps(output):
    factory = SpyFactory()
    manager = SynthLifecycleManager(output, factory)
    manager.swap(OscillatorType.SINE)

    binding = bind_keys([_key("E4")], lambda: manager.active)["E4"]
    binding.on_press()
    first = manager.active

    manager.swap(OscillatorType.SQUARE)
    binding.on_press()

    assert first.events[0] == ('on', 64)
    assert manager.active.events == [('on', 64)]
    assert manager.active is not first


def test_bind_keys_keyed_by_identifier():
    keys = compute_keys(OctaveRange(2, 3), SAXOPHONE_SCALE)
    bindings = bind_keys(keys, lambda: None)

    assert len(bindings) == 12
    assert bindings["A2"].key.identifier == "A2"
