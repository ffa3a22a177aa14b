"""
Async Python client for the blog service: the HTTP wrapper plus the reader and admin
state (query cache, post view, session provider) built on it.
"""

from blogsite.client.api_client import BlogApiClient
from blogsite.client.reader import AdminConsole, HttpIdentityProvider, PostView, QueryCache, ReaderSession

__all__ = ["AdminConsole", "BlogApiClient", "HttpIdentityProvider", "PostView", "QueryCache", "ReaderSession"]
