"""Core synchronization engine for forkwatch."""
