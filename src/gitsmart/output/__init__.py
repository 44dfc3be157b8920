"""Terminal rendering for command results."""
