"""
Prompt assembly -- instruction and task payloads for the external model.

    from .assembly import InstructionConfig, TaskConfig, assemble

    result = assemble(InstructionConfig(...), TaskConfig(...))
    result.instruction, result.task
"""

from .engine import (
    DEFAULT_TONE,
    AssemblyResult,
    InstructionConfig,
    TaskConfig,
    assemble,
    assemble_direct_prompt,
    assemble_instruction,
    assemble_task,
)
