"""Domain layer: enums, errors, value objects and invariants."""
