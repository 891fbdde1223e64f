"""Context assembly: budgets, reduction and the ask flow."""

from kikishell.agent.cancel import RequestScope, interrupt_scope
from kikishell.agent.reducer import IterativeReducer, ReducerState
from kikishell.agent.session import Session
from kikishell.agent.assembler import (
    AskResult,
    AssembledContent,
    ContextAssembler,
    capacity_hint,
    read_attachment,
)

__all__ = [
    "AskResult",
    "AssembledContent",
    "ContextAssembler",
    "IterativeReducer",
    "ReducerState",
    "RequestScope",
    "Session",
    "capacity_hint",
    "interrupt_scope",
    "read_attachment",
]
