"""Runtime concerns around invocation: observability."""
