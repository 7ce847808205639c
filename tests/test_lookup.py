"""Tests for the side-channel display-name lookup client."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from lutra.adapters.lookup import UserLookup
from lutra.errors import LookupFailure


def _session(status=200, body=None, error=None):
    resp = MagicMock()
    resp.status = status
    resp.json = AsyncMock(return_value=body)

    ctx = MagicMock()
    if error is not None:
        ctx.__aenter__ = AsyncMock(side_effect=error)
    else:
        ctx.__aenter__ = AsyncMock(return_value=resp)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.get.return_value = ctx
    session.close = AsyncMock()
    return session


def _lookup(session):
    lookup = UserLookup("https://users.example/api/")
    lookup._session = session
    return lookup


@pytest.mark.asyncio
async def test_display_name_success():
    session = _session(body={"id": 42, "username": "Ann"})
    lookup = _lookup(session)
    assert await lookup.display_name("42") == "Ann"
    assert session.get.call_args.args[0] == "https://users.example/api/users/42"


@pytest.mark.asyncio
async def test_http_error_raises_lookup_failure():
    lookup = _lookup(_session(status=404, body={"error": "not found"}))
    with pytest.raises(LookupFailure, match="HTTP 404"):
        await lookup.display_name("42")


@pytest.mark.asyncio
async def test_missing_username_raises_lookup_failure():
    lookup = _lookup(_session(body={"id": 42}))
    with pytest.raises(LookupFailure, match="no username"):
        await lookup.display_name("42")


@pytest.mark.asyncio
async def test_connection_error_wrapped():
    lookup = _lookup(_session(error=aiohttp.ClientConnectionError("refused")))
    with pytest.raises(LookupFailure) as excinfo:
        await lookup.display_name("42")
    assert excinfo.value.user_id == "42"


@pytest.mark.asyncio
async def test_close_releases_session():
    session = _session(body={"username": "Ann"})
    lookup = _lookup(session)
    await lookup.close()
    session.close.assert_awaited_once()
    assert lookup._session is None
