"""Value objects exchanged between the signing engine and its callers."""
