"""Admission pipeline: read ledger totals, check concentration, persist."""

from .coordinator import AdmissionCoordinator
from .orchestrator import AdmissionOrchestrator

__all__ = ["AdmissionCoordinator", "AdmissionOrchestrator"]
