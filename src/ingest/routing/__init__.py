"""Routing — pattern compilation and priority-ordered dispatch."""
