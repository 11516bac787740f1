"""Generic operation orchestration: results, sessions, rollback and progress."""

from .context import RunContext
from .operations import Checker, Installer, Operation, Validator
from .orchestrator import Orchestrator, StepCallback, run_operations
from .progress import PIPELINE_PHASES, ProgressChannel, ProgressEstimator, ProgressUpdate
from .results import (
    CheckResult,
    CheckStatus,
    OperationResult,
    Result,
    SetupStatus,
    Severity,
    utcnow,
)
from .session import RollbackAction, Session

__all__ = [
    "RunContext",
    "Operation",
    "Installer",
    "Validator",
    "Checker",
    "Orchestrator",
    "StepCallback",
    "run_operations",
    "PIPELINE_PHASES",
    "ProgressEstimator",
    "ProgressUpdate",
    "ProgressChannel",
    "CheckResult",
    "CheckStatus",
    "OperationResult",
    "Result",
    "SetupStatus",
    "Severity",
    "utcnow",
    "RollbackAction",
    "Session",
]
