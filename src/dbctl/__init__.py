from __future__ import annotations

from dbctl.core.models import (
	DbctlConfig,
	LifecycleOutcome,
	LivenessReport,
	LivenessVerdict,
	OutcomeStatus,
	PidRecord,
	ServiceEndpoint,
)

__version__ = "0.1.0"

__all__ = [
	"DbctlConfig",
	"LifecycleOutcome",
	"LivenessReport",
	"LivenessVerdict",
	"OutcomeStatus",
	"PidRecord",
	"ServiceEndpoint",
	"__version__",
]
