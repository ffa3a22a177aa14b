from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from blogsite.database.manager import DatabaseManager


@pytest.fixture
def motor_client():
    with patch("blogsite.database.manager.AsyncIOMotorClient") as client_cls:
        client = MagicMock()
        client.admin.command = AsyncMock(return_value={"ok": 1})
        collection = client.__getitem__.return_value.__getitem__.return_value
        collection.create_index = AsyncMock()
        client_cls.return_value = client
        yield client


def test_get_collection_requires_connection():
    with pytest.raises(ConnectionError):
        DatabaseManager().get_collection("blogs")


@pytest.mark.asyncio
async def test_health_check_without_client():
    assert await DatabaseManager().health_check() is False


@pytest.mark.asyncio
async def test_connect_and_health_check(motor_client):
    manager = DatabaseManager()

    await manager.connect()

    assert manager.client is motor_client
    assert await manager.health_check() is True
    motor_client.admin.command.assert_awaited_with("ping")

    await manager.disconnect()
    motor_client.close.assert_called_once()
    assert manager.database is None


@pytest.mark.asyncio
async def test_connect_gives_up_after_last_attempt(motor_client):
    motor_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
    manager = DatabaseManager()
    manager._connection_retries = 1

    with pytest.raises(ServerSelectionTimeoutError):
        await manager.connect()


@pytest.mark.asyncio
async def test_create_indexes(motor_client):
    manager = DatabaseManager()
    await manager.connect()

    await manager.create_indexes()

    collection = motor_client.__getitem__.return_value.__getitem__.return_value
    specs = [c.args[0] for c in collection.create_index.await_args_list]
    assert "email" in specs
    assert "jti" in specs
    assert [("published", 1), ("published_at", -1)] in specs
