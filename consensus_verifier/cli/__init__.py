"""Command-line tools for the consensus verifier.

- ``python -m consensus_verifier.cli verify <id> <name>`` verifies one subject.
- ``synthesize``, ``pipeline``, ``batch``, ``audit`` and ``status`` cover
  the remaining service operations; see :mod:`consensus_verifier.cli.verify`.

All commands use argparse and build their own components from the
environment; nothing is shared with a running API server.
"""
