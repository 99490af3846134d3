"""Runtime session, timers, command dispatch, loading and telemetry."""
