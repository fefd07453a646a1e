"""
Synth Lifecycle Manager

Owns the single active engine of an instrument and swaps it on request.

A swap builds the new engine under the swap lock only, then runs
disconnect -> connect -> publish inside one output bus transaction:
- swaps never interleave; concurrent requests queue and run in order
- the audio thread keeps rendering the old engine while the new one is built
- it never renders with zero or two engines attached
- a failed build leaves the bus untouched; a failed connect reconnects the
  previous engine before reporting
"""

import logging
import threading
from typing import Callable, Optional, Union

from ..engine.base import SynthEngine
from ..engine.oscillator import OscillatorType
from ..engine.output import AudioOutput
from ..production.error_handler import ErrorSeverity, ProductionErrorHandler, SynthSwapError

log = logging.getLogger(__name__)

EngineFactory = Callable[[OscillatorType], SynthEngine]


class SynthLifecycleManager:
    """Serialized owner of the active synth handle"""

    def __init__(self, output: AudioOutput, factory: EngineFactory,
                 error_handler: Optional[ProductionErrorHandler] = None):
        self.output = output
        self.factory = factory
        self.error_handler = error_handler or ProductionErrorHandler()
        self._active: Optional[SynthEngine] = None
        self._owned = False
        self._swap_lock = threading.Lock()
        self.swap_count = 0
        self.failed_swaps = 0

    @property
    def active(self) -> Optional[SynthEngine]:
        """Current handle; callers must not keep it past the next swap"""
        return self._active

    @property
    def active_type(self) -> Optional[OscillatorType]:
        engine = self._active
        return engine.oscillator_type if engine is not None else None

    @property
    def owns_active(self) -> bool:
        return self._active is not None and self._owned

    def adopt(self, engine: SynthEngine, owned: bool = False) -> SynthEngine:
        """Make an existing engine (e.g. the shared sampler) the active one"""
        with self._swap_lock:
            previous, previous_owned = self._active, self._owned
            with self.output.transaction():
                if previous is not None:
                    previous.disconnect()
                engine.connect(self.output)
                self._active, self._owned = engine, owned
            self._discard(previous, previous_owned)

        log.info(f"✓ Active synth: {engine!r}")
        return engine

    def swap(self, new_type: Union[OscillatorType, str]) -> SynthEngine:
        """
        Replace the active engine with a new one of the given oscillator type

        Raises:
            SynthSwapError: construction or connection failed; the previous
                engine is connected and active again
        """
        new_type = OscillatorType(new_type)

        with self._swap_lock:
            previous, previous_owned = self._active, self._owned
            failure = None
            engine = None

            try:
                engine = self.factory(new_type)
            except Exception as e:
                failure = e

            if failure is None:
                with self.output.transaction():
                    if previous is not None:
                        previous.disconnect()
                    try:
                        engine.connect(self.output)
                    except Exception as e:
                        failure = e
                        engine.disconnect()
                        if previous is not None:
                            previous.connect(self.output)
                    else:
                        self._active, self._owned = engine, True
                        self.swap_count += 1

            if failure is not None:
                self.failed_swaps += 1
                previous_type = previous.oscillator_type if previous is not None else None
                self.error_handler.handle_error(
                    failure, 'synth_swap', ErrorSeverity.HIGH,
                    details={
                        'requested': new_type.value,
                        'previous': repr(previous),
                    }
                )
                log.warning(f"✗ Swap to {new_type.value} failed, keeping {previous!r}")
                if engine is not None:
                    engine.shutdown()
                raise SynthSwapError(
                    f"Could not create {new_type.value} synth: {failure}",
                    requested_type=new_type,
                    previous_type=previous_type,
                ) from failure

            self._discard(previous, previous_owned)

        log.info(f"✓ Swapped synth to {new_type.value}")
        return engine

    def close(self):
        """Teardown: release the active engine if this manager owns it"""
        with self._swap_lock:
            engine, owned = self._active, self._owned
            if engine is None:
                return
            if owned:
                with self.output.transaction():
                    engine.disconnect()
                engine.shutdown()
                log.info(f"✓ Released {engine!r}")
            # Shared engines outlive the instrument and stay wired
            self._active, self._owned = None, False

    def _discard(self, engine: Optional[SynthEngine], owned: bool):
        if engine is not None and owned:
            engine.shutdown()
