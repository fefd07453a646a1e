"""
Pointer Input Module

Drives an instrument surface from a touchpad or mouse through evdev. Absolute
axes are calibrated and scaled to surface pixels, relative motion is
accumulated and clamped. Button transitions are applied on SYN_REPORT so the
press lands at the position reported in the same frame.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

try:
    import evdev
    from evdev import ecodes, InputDevice
except ImportError:
    evdev = None
    ecodes = None
    InputDevice = None

log = logging.getLogger(__name__)


class PointerSurface(Protocol):
    size: Tuple[int, int]

    def pointer_down(self, x: float, y: float, pointer: int = 0): ...

    def pointer_up(self, pointer: int = 0): ...


@dataclass
class PointerState:
    """Pointer position in surface pixels plus device calibration"""
    x: float = 0.0
    y: float = 0.0
    pressed: bool = False
    x_min: int = 0
    x_max: int = 1
    y_min: int = 0
    y_max: int = 1


class PointerController:
    """Feeds evdev events into a surface's pointer_down/pointer_up"""

    def __init__(self, surface: PointerSurface, width: Optional[float] = None,
                 height: Optional[float] = None, pointer: int = 0):
        self.surface = surface
        surface_width, surface_height = surface.size
        self.width = width if width is not None else surface_width
        self.height = height if height is not None else surface_height
        self.pointer = pointer
        self.state = PointerState()
        self._pending: Optional[bool] = None
        self._running = False

    def calibrate(self, device: Optional[InputDevice] = None):
        """Read absolute axis ranges from the device"""
        if evdev is None or device is None:
            log.warning("evdev not available - using default calibration")
            return

        caps = device.capabilities()
        for item in caps.get(ecodes.EV_ABS, []):
            if not isinstance(item, tuple):
                continue
            code, info = item

            if code in (ecodes.ABS_X, ecodes.ABS_MT_POSITION_X):
                self.state.x_min, self.state.x_max = info.min, info.max
            elif code in (ecodes.ABS_Y, ecodes.ABS_MT_POSITION_Y):
                self.state.y_min, self.state.y_max = info.min, info.max

        log.info(f"Pointer calibrated: X={self.state.x_min}-{self.state.x_max} Y={self.state.y_min}-{self.state.y_max}")

    def handle_event(self, event) -> bool:
        """
        Handle one input event

        Returns:
            True if position or button state changed
        """
        if evdev is None:
            return False

        if event.type == ecodes.EV_ABS:
            code, value = event.code, event.value
            if code in (ecodes.ABS_X, ecodes.ABS_MT_POSITION_X):
                self.state.x = self._normalize(value, self.state.x_min, self.state.x_max) * self.width
                return True
            if code in (ecodes.ABS_Y, ecodes.ABS_MT_POSITION_Y):
                self.state.y = self._normalize(value, self.state.y_min, self.state.y_max) * self.height
                return True

        elif event.type == ecodes.EV_REL:
            if event.code == ecodes.REL_X:
                self.state.x = self._clamp(self.state.x + event.value, self.width)
                return True
            if event.code == ecodes.REL_Y:
                self.state.y = self._clamp(self.state.y + event.value, self.height)
                return True

        elif event.type == ecodes.EV_KEY and event.code in (ecodes.BTN_LEFT, ecodes.BTN_TOUCH):
            # value 2 is autorepeat
            if event.value in (0, 1):
                self._pending = bool(event.value)
                return True

        elif event.type == ecodes.EV_SYN and event.code == ecodes.SYN_REPORT:
            return self._flush()

        return False

    def _flush(self) -> bool:
        pressed, self._pending = self._pending, None
        if pressed is None or pressed == self.state.pressed:
            return False

        self.state.pressed = pressed
        if pressed:
            self.surface.pointer_down(self.state.x, self.state.y, self.pointer)
        else:
            self.surface.pointer_up(self.pointer)
        return True

    def release(self):
        """Lift the pointer if it is down"""
        self._pending = None
        if self.state.pressed:
            self.state.pressed = False
            self.surface.pointer_up(self.pointer)

    async def run(self, device: InputDevice):
        self._running = True
        try:
            async for event in device.async_read_loop():
                if not self._running:
                    break
                self.handle_event(event)
        except asyncio.CancelledError:
            pass
        except OSError as e:
            log.error(f"Pointer device lost: {e}")
        finally:
            self.release()
            self._running = False

    def stop(self):
        self._running = False

    @staticmethod
    def _normalize(value: int, min_val: int, max_val: int) -> float:
        """Normalize raw device value to 0.0-1.0 range"""
        if max_val == min_val:
            return 0.5
        return max(0.0, min(1.0, (value - min_val) / (max_val - min_val)))

    @staticmethod
    def _clamp(value: float, limit: float) -> float:
        return max(0.0, min(float(limit), value))


def find_pointer_devices() -> List[InputDevice]:
    """Touchpads and mice the current user can read"""
    if evdev is None:
        log.error("evdev not available (pip install evdev)")
        return []

    try:
        devices = [InputDevice(p) for p in evdev.list_devices()]
    except PermissionError as e:
        log.error(f"Permission denied accessing input devices: {e}")
        log.error("Fix: sudo usermod -aG input $USER && logout")
        return []

    found = []
    for dev in devices:
        caps = dev.capabilities()
        keys = caps.get(ecodes.EV_KEY, [])
        abs_caps = [c[0] if isinstance(c, tuple) else c for c in caps.get(ecodes.EV_ABS, [])]
        rel_caps = caps.get(ecodes.EV_REL, [])

        is_touchpad = ecodes.BTN_TOUCH in keys and (
            ecodes.ABS_X in abs_caps or ecodes.ABS_MT_POSITION_X in abs_caps)
        is_mouse = ecodes.BTN_LEFT in keys and ecodes.REL_X in rel_caps

        if is_touchpad or is_mouse:
            log.info(f"{'Touchpad' if is_touchpad else 'Mouse'}: {dev.name}")
            found.append(dev)

    if not found:
        log.warning("No pointer devices found")
    return found
