"""Exercise tracker backend.

This package exposes the FastAPI application (`main`), the services and
repositories behind it, and the SQLModel models shared by the in-memory
and SQL store backends.
"""
