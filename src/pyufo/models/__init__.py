"""Models for records carried in reply batches."""

from pyufo.models.instruction import Instruction, InstructionType

__all__ = [
    "Instruction",
    "InstructionType",
]
