"""
Test package for the timekeeper backend application.

This package contains test suites for:
- PIN hashing, flows, credential store and action gate
- Authentication and per-user data isolation
- Billing profiles, clock in/out and time entries
- Earnings reports
"""
