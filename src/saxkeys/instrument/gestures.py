"""
Gesture Binding

Maps pointer press/release on a key to attack/release on whatever engine is
current at that moment. Holds no state of its own; a missing engine is a
no-op, since keys can be drawn before the engine is up.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Optional, Sequence

from ..engine.base import SynthEngine
from ..layout import KeyDescriptor

DEFAULT_GRACE = timedelta(milliseconds=250)

HandleRef = Callable[[], Optional[SynthEngine]]


def press(key: KeyDescriptor, handle: Optional[SynthEngine]):
    if handle is not None:
        handle.attack(key.identifier)


def release(key: KeyDescriptor, handle: Optional[SynthEngine], grace: timedelta = DEFAULT_GRACE):
    if handle is not None:
        handle.release(key.identifier, grace)


@dataclass(frozen=True)
class GestureBinding:
    """Press/release handlers for one key"""
    key: KeyDescriptor
    handle_ref: HandleRef
    grace: timedelta = DEFAULT_GRACE

    def on_press(self):
        press(self.key, self.handle_ref())

    def on_release(self):
        release(self.key, self.handle_ref(), self.grace)


def bind_keys(keys: Sequence[KeyDescriptor], handle_ref: HandleRef,
              grace: timedelta = DEFAULT_GRACE) -> Dict[str, GestureBinding]:
    """Bindings keyed by note identifier"""
    return {key.identifier: GestureBinding(key, handle_ref, grace) for key in keys}
