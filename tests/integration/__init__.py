"""
Integration test package for the harness.

Tests use the Flask test client and a live reference server and demonstrate:
- Task contract testing (ordering, ids, partial updates)
- End-to-end soak runs against a real HTTP target
- Defect detection with a deliberately broken client
"""
