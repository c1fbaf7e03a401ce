"""
Code Claim Bot Test Suite
=========================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with mocks (no database)
- tests/integration/   : Tests against a real SQLite file per test

Markers: unit, integration, database
"""
