"""
Production Error Handler

Central place where failures are recorded and explained. Each error gets a
user-facing message with suggested fixes; contexts with a registered
recovery strategy get one attempt at fixing themselves, guarded by a
circuit breaker so a broken strategy is not retried forever.
"""

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

log = logging.getLogger(__name__)

SOUNDFONT_SEARCH_PATHS = [
    Path.home() / ".local/share/soundfonts",
    Path.home() / "soundfonts",
    Path("/usr/share/soundfonts"),
    Path("/usr/share/sounds/sf2"),
    Path("/usr/local/share/soundfonts"),
]

RecoveryStrategy = Callable[[Exception, Dict[str, Any]], bool]


class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorContext:
    """A recorded error with its explanation"""
    error: Exception
    context: str
    severity: ErrorSeverity
    user_message: str
    solutions: List[str]
    details: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)
    recoverable: bool = True


@dataclass(frozen=True)
class ErrorAdvice:
    message: str
    solutions: Tuple[str, ...]
    recoverable: bool = False


_ADVICE = {
    'synth_swap': ErrorAdvice(
        "Could not switch to {requested} oscillator",
        (
            "The previous sound is still active and playable",
            "Select the oscillator again to retry",
            "Run with verbose logging for the full traceback",
        ),
    ),
    'sample_load': ErrorAdvice(
        "SoundFont Loading Failed",
        (
            "Check if the SoundFont file is readable",
            "Try a different SoundFont file",
            "Install pyfluidsynth and the FluidSynth library",
        ),
        recoverable=True,
    ),
    'audio_output': ErrorAdvice(
        "Audio Output Failed",
        (
            "Check that an output device is available",
            "Install PortAudio for sounddevice",
            "Try another device in the audio section of the config",
        ),
    ),
}

_MISSING_SOUNDFONT = ErrorAdvice(
    "SoundFont File Not Found",
    (
        "Check the soundfont path in ~/.config/saxkeys/config.yaml",
        "Install a General MIDI SoundFont (e.g. FluidR3_GM.sf2)",
        "The keyboard stays silent until a SoundFont loads",
    ),
    recoverable=True,
)

_UNEXPECTED = ErrorAdvice(
    "Unexpected Error in {context}",
    (
        "Try the action again",
        "Run with verbose logging for more details",
    ),
)


class SynthSwapError(Exception):
    """A synth swap failed; the previous synth is still active"""

    def __init__(self, message: str, requested_type=None, previous_type=None):
        super().__init__(message)
        self.requested_type = requested_type
        self.previous_type = previous_type


class ProductionErrorHandler:
    """Records errors per context and runs recovery strategies"""

    def __init__(self, max_history: int = 100, breaker_threshold: int = 3):
        self.max_history = max_history
        self.breaker_threshold = breaker_threshold
        self.error_history: List[ErrorContext] = []
        self.error_counts: Dict[str, int] = {}
        self.severity_counts = {s: 0 for s in ErrorSeverity}
        self.recovery_strategies: Dict[str, RecoveryStrategy] = {
            'sample_load': self._recover_sample_load,
        }
        self._failed_recoveries: Dict[str, int] = {}

    def handle_error(self, error: Exception, context: str,
                     severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                     details: Optional[Dict[str, Any]] = None) -> bool:
        """
        Record an error and try to recover from it

        Args:
            error: The exception that occurred
            context: Where it happened ('synth_swap', 'sample_load', ...)
            severity: Chooses the log level
            details: Extra facts for the report; recovery may add to it

        Returns:
            True if a recovery strategy fixed the problem
        """
        details = details if details is not None else {}
        self.error_counts[context] = self.error_counts.get(context, 0) + 1
        self.severity_counts[severity] += 1

        advice = self._advise(error, context)
        record = ErrorContext(
            error=error,
            context=context,
            severity=severity,
            user_message=advice.message.format(
                context=context, requested=details.get('requested', 'the selected')),
            solutions=list(advice.solutions),
            details=details,
            recoverable=advice.recoverable,
        )
        self._record(record)

        strategy = self.recovery_strategies.get(context)
        if not record.recoverable or strategy is None:
            return False
        if self.breaker_open(context):
            log.warning(f"Recovery for {context} disabled after repeated failures")
            return False

        try:
            recovered = strategy(error, details)
        except Exception as e:
            log.error(f"Recovery strategy for {context} raised: {e}")
            recovered = False

        if recovered:
            self._failed_recoveries.pop(context, None)
            log.info(f"✓ Recovered from {context} error")
        else:
            failures = self._failed_recoveries.get(context, 0) + 1
            self._failed_recoveries[context] = failures
            log.warning(f"✗ Recovery failed for {context} ({failures}/{self.breaker_threshold})")
        return recovered

    def register_recovery_strategy(self, context: str, strategy: RecoveryStrategy):
        self.recovery_strategies[context] = strategy
        self._failed_recoveries.pop(context, None)

    def breaker_open(self, context: str) -> bool:
        return self._failed_recoveries.get(context, 0) >= self.breaker_threshold

    def last_error(self, context: Optional[str] = None) -> Optional[ErrorContext]:
        for record in reversed(self.error_history):
            if context is None or record.context == context:
                return record
        return None

    def format_error(self, record: ErrorContext) -> str:
        """Multi-line report for the terminal"""
        lines = [
            f"✗ {record.user_message}",
            f"  {type(record.error).__name__}: {record.error}",
        ]
        if record.solutions:
            lines.append("  Try:")
            lines.extend(f"    {i}. {s}" for i, s in enumerate(record.solutions, 1))
        if record.details:
            lines.append("  Details:")
            lines.extend(f"    {k}: {v}" for k, v in record.details.items())
        return "\n".join(lines)

    def get_error_statistics(self) -> Dict[str, Any]:
        hour_ago = time.time() - 3600
        return {
            'total_errors': sum(self.error_counts.values()),
            'error_counts': dict(self.error_counts),
            'low_severity': self.severity_counts[ErrorSeverity.LOW],
            'medium_severity': self.severity_counts[ErrorSeverity.MEDIUM],
            'high_severity': self.severity_counts[ErrorSeverity.HIGH],
            'critical_errors': self.severity_counts[ErrorSeverity.CRITICAL],
            'recent_errors': sum(1 for r in self.error_history if r.timestamp > hour_ago),
            'circuit_breakers_open': sum(1 for c in self._failed_recoveries if self.breaker_open(c)),
        }

    def reset_statistics(self):
        self.error_history.clear()
        self.error_counts.clear()
        self.severity_counts = {s: 0 for s in ErrorSeverity}
        self._failed_recoveries.clear()

    def _advise(self, error: Exception, context: str) -> ErrorAdvice:
        if context == 'sample_load' and isinstance(error, FileNotFoundError):
            return _MISSING_SOUNDFONT
        return _ADVICE.get(context, _UNEXPECTED)

    def _record(self, record: ErrorContext):
        log.log(_LOG_LEVELS[record.severity],
                f"[{record.context}] {record.user_message}: {record.error}")
        if record.error.__traceback__ is not None:
            log.debug("".join(traceback.format_tb(record.error.__traceback__)))

        self.error_history.append(record)
        del self.error_history[:-self.max_history]

    def _recover_sample_load(self, error: Exception, details: Dict[str, Any]) -> bool:
        """Suggest the first SoundFont found in the usual places"""
        for directory in SOUNDFONT_SEARCH_PATHS:
            if not directory.is_dir():
                continue
            found = sorted(p for p in directory.iterdir() if p.suffix.lower() == '.sf2')
            if found:
                details['suggested_soundfont'] = str(found[0])
                log.info(f"Found SoundFont: {found[0]} (set sampler.soundfont to use it)")
                return True

        log.error("No SoundFont files found in standard locations")
        return False
