"""
Tests package - Test suite for the Secret Mirror operator.

Contains:
- unit/: Unit tests for individual components, run against an in-memory store
"""
