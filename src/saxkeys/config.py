"""
SaxKeys Configuration Module
============================
YAML configuration for audio output, key layout, oscillator and sampler
settings. Values become domain objects through the helper methods on
FullConfig.
"""

import logging
import os
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .engine.oscillator import Envelope, OscillatorType
from .layout import KeyGeometry, OctaveRange, ScaleStep, SAXOPHONE_SCALE, validate_scale

log = logging.getLogger(__name__)


DEFAULT_CONFIG_YAML = """# SaxKeys Configuration
# =====================
# Place in ~/.config/saxkeys/config.yaml

# Audio output (sounddevice)
audio:
  sample_rate: 48000
  block_size: 256
  channels: 2
  device: null        # null = system default

# Key layout
keyboard:
  octave_start: 2
  octave_end: 6
  steps_per_octave: 7
  # Accidentals sit on half steps, e.g. {note: Db, index: 0.5}
  scale:
    - {note: C, index: 0}
    - {note: D, index: 1}
    - {note: E, index: 2}
    - {note: F, index: 3}
    - {note: A, index: 4}
    - {note: B, index: 5}

# Pixel metrics
geometry:
  step_unit: 32
  natural_width: 32
  accidental_width: 24
  accidental_inset: 4
  natural_height: 128
  accidental_height: 64
  palette_entry_width: 96
  palette_height: 32

# Oscillator synth
synth:
  default_oscillator: sine   # sine, sawtooth, square, triangle, fm*, am*
  release_grace_ms: 250
  volume: 0.2
  envelope:
    attack: 0.005
    decay: 0.1
    sustain: 0.3
    release: 1.0

# Sample-backed engine (FluidSynth)
sampler:
  enabled: true
  soundfont: null     # path to a General MIDI .sf2
  program: 65         # Alto Sax
  bank: 0
  gain: 0.5
"""


@dataclass
class AudioConfig:
    sample_rate: int = 48000
    block_size: int = 256
    channels: int = 2
    device: Optional[str] = None


@dataclass
class ScaleEntry:
    note: str
    index: float


def _default_scale() -> List[ScaleEntry]:
    return [ScaleEntry(s.note.value, float(s.relative_index)) for s in SAXOPHONE_SCALE]


@dataclass
class KeyboardConfig:
    octave_start: int = 2
    octave_end: int = 6
    steps_per_octave: int = 7
    scale: List[ScaleEntry] = field(default_factory=_default_scale)


@dataclass
class GeometryConfig:
    step_unit: int = 32
    natural_width: int = 32
    accidental_width: int = 24
    accidental_inset: int = 4
    natural_height: int = 128
    accidental_height: int = 64
    palette_entry_width: int = 96
    palette_height: int = 32


@dataclass
class EnvelopeConfig:
    attack: float = 0.005
    decay: float = 0.1
    sustain: float = 0.3
    release: float = 1.0


@dataclass
class SynthConfig:
    default_oscillator: str = "sine"
    release_grace_ms: int = 250
    volume: float = 0.2
    envelope: EnvelopeConfig = field(default_factory=EnvelopeConfig)


@dataclass
class SamplerConfig:
    enabled: bool = True
    soundfont: Optional[str] = None
    program: int = 65
    bank: int = 0
    gain: float = 0.5


@dataclass
class FullConfig:
    audio: AudioConfig = field(default_factory=AudioConfig)
    keyboard: KeyboardConfig = field(default_factory=KeyboardConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    synth: SynthConfig = field(default_factory=SynthConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)

    def octave_range(self) -> OctaveRange:
        return OctaveRange(self.keyboard.octave_start, self.keyboard.octave_end)

    def scale_steps(self) -> List[ScaleStep]:
        # str() keeps 0.5 exact when it becomes a Fraction
        return [ScaleStep.of(entry.note, str(entry.index)) for entry in self.keyboard.scale]

    def key_geometry(self) -> KeyGeometry:
        g = self.geometry
        return KeyGeometry(
            step_unit=g.step_unit,
            natural_width=g.natural_width,
            accidental_width=g.accidental_width,
            accidental_inset=g.accidental_inset,
            natural_height=g.natural_height,
            accidental_height=g.accidental_height,
        )

    def release_grace(self) -> timedelta:
        return timedelta(milliseconds=self.synth.release_grace_ms)

    def default_oscillator(self) -> OscillatorType:
        return OscillatorType(self.synth.default_oscillator)

    def envelope(self) -> Envelope:
        return Envelope(**asdict(self.synth.envelope))


def get_config_path() -> Path:
    """Get the configuration file path"""
    xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
    return Path(xdg_config) / 'saxkeys' / 'config.yaml'


def create_default_config(path: Optional[Path] = None) -> Path:
    """Write the default configuration file unless one exists"""
    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if not config_path.exists():
        config_path.write_text(DEFAULT_CONFIG_YAML)
        log.info(f"Created default config: {config_path}")
    else:
        log.info(f"Config already exists: {config_path}")
    return config_path


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return value


def parse_config(data: Dict[str, Any]) -> FullConfig:
    """Build a FullConfig from parsed YAML; missing keys keep their defaults"""
    config = FullConfig()

    audio = _section(data, 'audio')
    config.audio = AudioConfig(
        sample_rate=audio.get('sample_rate', 48000),
        block_size=audio.get('block_size', 256),
        channels=audio.get('channels', 2),
        device=audio.get('device'),
    )

    kb = _section(data, 'keyboard')
    scale = kb.get('scale')
    config.keyboard = KeyboardConfig(
        octave_start=kb.get('octave_start', 2),
        octave_end=kb.get('octave_end', 6),
        steps_per_octave=kb.get('steps_per_octave', 7),
        scale=(
            [ScaleEntry(note=str(s['note']), index=s['index']) for s in scale]
            if scale else _default_scale()
        ),
    )

    geometry = _section(data, 'geometry')
    config.geometry = GeometryConfig(**{
        k: geometry.get(k, v) for k, v in asdict(GeometryConfig()).items()
    })

    synth = _section(data, 'synth')
    env = _section(synth, 'envelope')
    config.synth = SynthConfig(
        default_oscillator=synth.get('default_oscillator', 'sine'),
        release_grace_ms=synth.get('release_grace_ms', 250),
        volume=synth.get('volume', 0.2),
        envelope=EnvelopeConfig(**{
            k: env.get(k, v) for k, v in asdict(EnvelopeConfig()).items()
        }),
    )

    sampler = _section(data, 'sampler')
    config.sampler = SamplerConfig(
        enabled=sampler.get('enabled', True),
        soundfont=sampler.get('soundfont'),
        program=sampler.get('program', 65),
        bank=sampler.get('bank', 0),
        gain=sampler.get('gain', 0.5),
    )

    # Fail early on values the domain objects reject
    config.octave_range()
    config.default_oscillator()
    validate_scale(config.scale_steps(), config.keyboard.steps_per_octave)
    return config


def load_config(path: Optional[str] = None) -> FullConfig:
    """Load configuration from YAML file, falling back to defaults"""
    config_path = Path(path) if path else get_config_path()

    if not config_path.exists():
        return FullConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not data:
            return FullConfig()

        config = parse_config(data)
        log.info(f"Loaded config: {config_path}")
        return config

    except (OSError, yaml.YAMLError, ValueError, TypeError, KeyError) as e:
        log.warning(f"Failed to load config {config_path}: {e}")
        return FullConfig()


def save_config(config: FullConfig, path: Optional[str] = None) -> Path:
    """Save configuration to YAML file"""
    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False, sort_keys=False)

    log.info(f"Saved config: {config_path}")
    return config_path
