"""HTTP service for the sequence-diagram styler."""
