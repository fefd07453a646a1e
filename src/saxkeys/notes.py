"""
Note Names

Pitch classes, note identifiers ("C3", "Db4") and their MIDI/frequency mapping.
"""

import re
from enum import Enum
from typing import Tuple


class NoteName(Enum):
    """The 12 pitch classes, spelled with flats"""
    C = "C"
    Db = "Db"
    D = "D"
    Eb = "Eb"
    E = "E"
    F = "F"
    Gb = "Gb"
    G = "G"
    Ab = "Ab"
    A = "A"
    Bb = "Bb"
    B = "B"

    @property
    def pitch_class(self) -> int:
        return _PITCH_CLASSES.index(self.value)

    @property
    def is_accidental(self) -> bool:
        return len(self.value) > 1

    @classmethod
    def parse(cls, name: str) -> 'NoteName':
        """Parse a note name; sharps are folded onto their flat spelling"""
        name = name.strip()
        if name in _SHARPS:
            name = _SHARPS[name]
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown note name: {name!r}") from None


_PITCH_CLASSES = ('C', 'Db', 'D', 'Eb', 'E', 'F', 'Gb', 'G', 'Ab', 'A', 'Bb', 'B')

_SHARPS = {
    'C#': 'Db', 'D#': 'Eb', 'F#': 'Gb', 'G#': 'Ab', 'A#': 'Bb',
}

_NOTE_ID = re.compile(r'^([A-G](?:#|b)?)(-?\d+)$')


def note_identifier(note: NoteName, octave: int) -> str:
    return f"{note.value}{octave}"


def parse_identifier(identifier: str) -> Tuple[NoteName, int]:
    """Split "Db4" into (NoteName.Db, 4)"""
    match = _NOTE_ID.match(identifier.strip())
    if not match:
        raise ValueError(f"Invalid note identifier: {identifier!r}")
    return NoteName.parse(match.group(1)), int(match.group(2))


def note_to_midi(identifier: str) -> int:
    """MIDI note number for an identifier (C4 = 60)"""
    note, octave = parse_identifier(identifier)
    midi = (octave + 1) * 12 + note.pitch_class
    if not 0 <= midi <= 127:
        raise ValueError(f"Note out of MIDI range: {identifier!r}")
    return midi


def midi_to_frequency(midi: int, tuning: float = 440.0) -> float:
    return tuning * 2.0 ** ((midi - 69) / 12.0)
