"""
Routes package for the reference Task API.

This package contains one blueprint:
- api: REST endpoints of the task resource contract
"""
