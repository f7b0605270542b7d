"""Signature feature exceptions."""
from __future__ import annotations


class SignatureError(Exception):
    """Base exception for the signature feature."""


class SignatureRenderError(SignatureError):
    """An image could not be rendered, decoded or stamped."""
