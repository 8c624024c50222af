"""
Hapgyeokpan community API.

This package provides the FastAPI application for the exam-preparation
community, with database, auth and storage abstractions over the hosted
Supabase backend and in-memory doubles for local runs and tests.
"""
