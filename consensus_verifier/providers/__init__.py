"""Concrete adapters for the interfaces in ``consensus_verifier.interfaces``."""
