"""Layered configuration for the signing engine."""
from .config_service import ConfigService

__all__ = ["ConfigService"]
