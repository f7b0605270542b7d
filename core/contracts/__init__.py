"""core.contracts

Stable interfaces (ABCs) for the collaborators the signing engine consumes:
persistence, blob storage, session storage, identity and the audit sink.

Only interfaces and shared type definitions live here.
"""
