"""Shared FastAPI dependencies."""

from __future__ import annotations

from certifier.service import CertificationService

_service: CertificationService | None = None


def get_service() -> CertificationService:
    """FastAPI dependency: return the shared CertificationService."""
    assert _service is not None, "CertificationService not initialised"
    return _service
