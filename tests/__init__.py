"""zapgen test suite."""
