"""
# Database Package

Persistence layer built on **Motor** (async MongoDB driver).

The `db_manager` instance is a **module-level singleton** so that one connection pool
is shared by the whole application. It is created at import time without I/O and
connected during application startup:

```python
from blogsite.database import db_manager

await db_manager.connect()        # FastAPI lifespan startup
blogs = db_manager.get_collection("blogs")
await db_manager.disconnect()     # FastAPI lifespan shutdown
```
"""

from blogsite.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]
