"""
Key Layout Engine

Turns an octave range and a scale definition into an ordered list of keys
with deterministic identifiers and pixel placement.

Layout (one octave of the default saxophone scale, step unit = 32px):

    C     D     E     F     A     B
    0     32    64    96    128   160

Accidentals sit half a step to the right of their lower neighbour, narrower
and stacked above the naturals:

    C  Db  D
    0  20  32      (Db = 0.5 * 32 + 4px inset)
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .notes import NoteName, note_identifier


@dataclass(frozen=True)
class OctaveRange:
    """Inclusive octave bounds"""
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Octave range start {self.start} is after end {self.end}")

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class ScaleStep:
    """One note of a scale definition and its position within the octave"""
    note: NoteName
    relative_index: Fraction

    @classmethod
    def of(cls, note: Union[str, NoteName], index: Union[int, float, str, Fraction]) -> 'ScaleStep':
        if not isinstance(note, NoteName):
            note = NoteName.parse(note)
        return cls(note, Fraction(index))


@dataclass(frozen=True)
class KeyDescriptor:
    """A single playable key"""
    note: NoteName
    octave: int
    scale_position: Fraction
    is_accidental: bool

    @property
    def identifier(self) -> str:
        return note_identifier(self.note, self.octave)


Scale = Sequence[ScaleStep]

DIATONIC_STEPS = 7

# The saxophone keys as shipped: G is left out and A/B move down a step
SAXOPHONE_SCALE: Tuple[ScaleStep, ...] = (
    ScaleStep.of('C', 0),
    ScaleStep.of('D', 1),
    ScaleStep.of('E', 2),
    ScaleStep.of('F', 3),
    ScaleStep.of('A', 4),
    ScaleStep.of('B', 5),
)

NATURAL_SCALE: Tuple[ScaleStep, ...] = tuple(
    ScaleStep.of(name, i) for i, name in enumerate('CDEFGAB')
)

CHROMATIC_SCALE: Tuple[ScaleStep, ...] = (
    ScaleStep.of('C', 0),
    ScaleStep.of('Db', '1/2'),
    ScaleStep.of('D', 1),
    ScaleStep.of('Eb', '3/2'),
    ScaleStep.of('E', 2),
    ScaleStep.of('F', 3),
    ScaleStep.of('Gb', '7/2'),
    ScaleStep.of('G', 4),
    ScaleStep.of('Ab', '9/2'),
    ScaleStep.of('A', 5),
    ScaleStep.of('Bb', '11/2'),
    ScaleStep.of('B', 6),
)


def validate_scale(scale: Scale, steps_per_octave: int = DIATONIC_STEPS) -> List[ScaleStep]:
    """
    Check a scale definition and return it sorted by relative index

    Raises:
        ValueError: on misaligned, duplicated or out-of-octave steps
    """
    seen_notes = set()
    seen_indices = set()

    for step in scale:
        index = Fraction(step.relative_index)
        if step.note.is_accidental:
            if index.denominator != 2:
                raise ValueError(f"Accidental {step.note.value} must sit on a half step, got {index}")
        elif index.denominator != 1:
            raise ValueError(f"Natural {step.note.value} must sit on a whole step, got {index}")

        if not 0 <= index < steps_per_octave:
            raise ValueError(
                f"{step.note.value} index {index} outside octave of {steps_per_octave} steps"
            )
        if step.note in seen_notes:
            raise ValueError(f"Duplicate note in scale: {step.note.value}")
        if index in seen_indices:
            raise ValueError(f"Duplicate scale position: {index}")

        seen_notes.add(step.note)
        seen_indices.add(index)

    return sorted(scale, key=lambda s: Fraction(s.relative_index))


def compute_keys(octaves: OctaveRange, scale: Scale,
                 steps_per_octave: int = DIATONIC_STEPS) -> List[KeyDescriptor]:
    """
    Lay out every scale step across the octave range

    Keys come out ordered by octave, then by relative index.
    """
    steps = validate_scale(scale, steps_per_octave)
    keys = []
    for octave in octaves:
        base = (octave - octaves.start) * steps_per_octave
        for step in steps:
            keys.append(KeyDescriptor(
                note=step.note,
                octave=octave,
                scale_position=base + Fraction(step.relative_index),
                is_accidental=step.note.is_accidental,
            ))
    return keys


@dataclass(frozen=True)
class KeyGeometry:
    """Pixel metrics for key placement"""
    step_unit: int = 32
    natural_width: int = 32
    accidental_width: int = 24
    accidental_inset: int = 4
    natural_height: int = 128
    accidental_height: int = 64


@dataclass(frozen=True)
class KeyPlacement:
    key: KeyDescriptor
    left: float
    width: int
    height: int
    z_index: int

    @property
    def right(self) -> float:
        return self.left + self.width

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x < self.right and 0 <= y < self.height


def place_key(key: KeyDescriptor, geometry: KeyGeometry) -> KeyPlacement:
    left = float(key.scale_position * geometry.step_unit)
    if key.is_accidental:
        return KeyPlacement(
            key=key,
            left=left + geometry.accidental_inset,
            width=geometry.accidental_width,
            height=geometry.accidental_height,
            z_index=1,
        )
    return KeyPlacement(
        key=key,
        left=left,
        width=geometry.natural_width,
        height=geometry.natural_height,
        z_index=0,
    )


def place_keys(keys: Sequence[KeyDescriptor], geometry: Optional[KeyGeometry] = None) -> List[KeyPlacement]:
    geometry = geometry or KeyGeometry()
    return [place_key(key, geometry) for key in keys]


def hit_test(placements: Sequence[KeyPlacement], x: float, y: float) -> Optional[KeyPlacement]:
    """Topmost key under the point, or None"""
    hit = None
    for placement in placements:
        if placement.contains(x, y):
            if hit is None or placement.z_index > hit.z_index:
                hit = placement
    return hit


def layout_width(placements: Sequence[KeyPlacement]) -> float:
    return max((p.right for p in placements), default=0.0)
