"""Reliability helpers: backend error classification."""

from .error_classifier import ErrorCategory, ErrorClassification, ErrorClassifier

__all__ = [
    "ErrorCategory",
    "ErrorClassification",
    "ErrorClassifier",
]
