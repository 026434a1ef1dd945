"""
Test suite for the tasksoak harness.

This package contains:
- unit/: Oracle, selector, checker, client, config and runner tests
  against an in-memory task resource
- integration/: Contract tests for the reference task API and full soak
  runs against it over real HTTP
"""
