"""
Pydantic schemas for API request/response validation.

Provides data models for all API endpoints including authentication,
PIN management, billing profiles, time tracking and reports.
"""
