"""
Instrument Descriptor

The value an external registry lists: a display name and the renderer class
it instantiates when the instrument is picked.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Type


class InstrumentRenderer(ABC):
    """An instrument that can draw itself"""

    @abstractmethod
    def render(self) -> List[str]:
        """Terminal lines for the current state"""


@dataclass(frozen=True)
class InstrumentDescriptor:
    name: str
    renderer: Type[InstrumentRenderer]
