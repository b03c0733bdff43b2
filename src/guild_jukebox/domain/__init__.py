"""Domain layer: pure state and rules, no I/O."""
