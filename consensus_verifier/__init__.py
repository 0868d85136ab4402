"""Consensus fact verifier.

Asks several independent LLM oracles the same research question about a
subject (e.g. a techno artist), normalizes their answers into comparable
fact keys, and keeps only the facts that a quorum of distinct oracles
agree on.
"""

__version__ = "0.1.0"
