"""Extraction pipeline orchestration."""

from soldedata.scraper.orchestrator import AttemptOrchestrator, run_extraction, run_extraction_sync

__all__ = ["AttemptOrchestrator", "run_extraction", "run_extraction_sync"]
