"""Exceptions and warnings raised while pooling analyses."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """The supplied analyses cannot be interpreted as an ordered collection of results."""


class SingleAnalysisWarning(UserWarning):
    """Only one analysis was supplied, so no pooling was performed."""
