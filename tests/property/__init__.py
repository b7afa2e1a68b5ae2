"""Property-based tests for capwire."""
