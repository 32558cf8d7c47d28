"""Use-cases: the orchestration layer behind :mod:`statflow.api`."""
