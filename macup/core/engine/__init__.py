"""Execution engine — planning, diffing, bounded execution, aggregation."""
