"""
Core app for the Peoples moderation platform.

Provides the user profile, error taxonomy, permissions, request tracing and
the legacy encoding bridge shared by the other apps.
"""
