"""Pipeline execution modules for the quote matcher."""

from .runner import BatchOrchestrator, BatchResult, MatchDetail, validate_batch_args

__all__ = ['BatchOrchestrator', 'BatchResult', 'MatchDetail', 'validate_batch_args']
