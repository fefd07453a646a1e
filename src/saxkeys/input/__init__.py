"""
Input Module

Touchpad and mouse input for instrument surfaces.
"""

from .pointer_input import (
    PointerState,
    PointerController,
    find_pointer_devices,
)

__all__ = [
    'PointerState',
    'PointerController',
    'find_pointer_devices',
]
