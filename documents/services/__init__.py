"""Services layer for documents module.

Orchestration of the signing workflow over its collaborators.
"""

from documents.services.signing_service import SigningService

__all__ = [
    "SigningService",
]
