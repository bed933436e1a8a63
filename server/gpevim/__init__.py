"""
Backend for the GPEVIM research group website.

This package provides a FastAPI application that manages publications,
members and their pictures, backed by a SQL database with an in-memory
fallback and S3-compatible (or local) image storage.
"""
