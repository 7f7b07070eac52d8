"""L4 Execution — steps with side effects."""
