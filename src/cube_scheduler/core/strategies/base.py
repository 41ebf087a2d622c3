"""
Generation strategy interface.

Every strategy turns a JITInput into a JITOutput that has already been
through the hard constraint enforcer.
"""

from abc import ABC, abstractmethod
from typing import ClassVar

from ..models import JITInput, JITOutput


class JITGenerator(ABC):
    name: ClassVar[str]
    description: ClassVar[str]

    @abstractmethod
    async def generate(self, inp: JITInput) -> JITOutput:
        """Produce a constraint-checked prescription for one session."""
