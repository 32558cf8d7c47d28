"""Optional helpers that are not part of the modelling workflow itself."""
