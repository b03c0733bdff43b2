"""Application layer: orchestrates the domain through ports."""
