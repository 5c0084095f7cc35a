"""phasebranch - phase-aware branch orchestration for workflow hooks."""

__version__ = "0.1.0"
