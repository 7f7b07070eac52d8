"""L5 Orchestration — install state machine and reversal."""
