"""Resilience helpers for the progression engine"""
from progression.resilience.retry import retry_with_backoff, is_retryable_error, calculate_backoff

__all__ = ["retry_with_backoff", "is_retryable_error", "calculate_backoff"]
