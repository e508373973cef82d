"""Backend connectivity resilience and diagnostics.

The public surface is :class:`~linkdoctor.application.service.ConnectivityService`
plus the value types in :mod:`linkdoctor.domain.models`.
"""

from linkdoctor.application.service import ConnectivityService
from linkdoctor.domain.models import (
    ConnectionStatus,
    DiagnosticsReport,
    RepairOutcome,
    RepairOutcomeKind,
    StatusSnapshot,
)

__all__ = [
    "ConnectivityService",
    "ConnectionStatus",
    "DiagnosticsReport",
    "RepairOutcome",
    "RepairOutcomeKind",
    "StatusSnapshot",
]
