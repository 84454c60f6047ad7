"""
Test support utilities for quarry tests.

Fakes and helpers that are not fixtures but are shared across test files.
"""
