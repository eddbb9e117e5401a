"""
Tests for the auth_service package.
"""
