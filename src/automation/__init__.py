"""Application workflow engine.

This module provides:
- ElementLocator: ordered locator cascades per intent
- FieldAnswerResolver: rule-first answers with an AI oracle fallback
- JobDiscovery: search, load-more pagination and job extraction
- ApplicationWorkflow: the per-job state machine
- FailureJournal: buffered failure records flushed to a sink
- Orchestrator: one full run over discovered jobs
"""
