"""
Signature module.

Normalizes drawn and typed signatures into PNG data URIs, keeps the drawing
pad's undo/redo history, and stamps completed field values onto the
original PDF (overlay merge).
"""
