"""matrix-nio adapters: event mapping, content rendering, and sending."""
