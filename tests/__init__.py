"""
Freezeus Backend Test Suite

This package contains all automated tests for the Freezeus backend.

Structure:
- unit/: Fast, isolated unit tests
- integration/: Tests for component integration
- e2e/: End-to-end tests (slow, expensive)
- fixtures/: Test data and mock responses
"""
