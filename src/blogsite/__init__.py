"""
blogsite: a small blogging service.

Public article feed, admin authentication and a content-management API over MongoDB,
plus an async client SDK that carries the reader-side engagement and session logic.
"""

__version__ = "1.0.0"
