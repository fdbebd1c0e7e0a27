"""Shared service-layer exceptions."""

from __future__ import annotations


class InvariantError(Exception):
    """Raised when an internal invariant is violated, such as drawing from an empty constant pool."""


class CollaboratorError(Exception):
    """Expected failure while calling an external language-model collaborator."""
