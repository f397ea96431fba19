"""Journaling engine primitives (prompt navigation and memory allocation).

Everything here is pure data in, pure data out. Persistence, locking and HTTP
live outside this package so the engine can be exercised directly from tests.
"""
