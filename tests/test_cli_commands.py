"""Tests for CLI command handlers."""

import pytest
from unittest.mock import AsyncMock, Mock

from cli.commands import (
    handle_download,
    handle_open,
    handle_qr,
    handle_share,
    handle_sweep,
)
from cli.models import (
    DownloadCommand,
    OpenCommand,
    QrCommand,
    ShareCommand,
    SweepCommand,
)
from cli.repl import dispatch_command
from cli.session import AirdropSession


@pytest.fixture
def mock_session():
    """AirdropSession double with async methods."""
    session = Mock(spec=AirdropSession)
    session.share = AsyncMock(return_value="Shared Files (2 files, 3 Bytes)")
    session.open = AsyncMock(return_value="Available Files (1 file, 3 Bytes)")
    session.download = AsyncMock(return_value="Successfully downloaded 1 file!")
    session.sweep = AsyncMock(return_value="Removed 0 expired shares")
    session.qr = AsyncMock(return_value="QR image saved to qr.png")
    return session


@pytest.mark.asyncio
async def test_handle_share(mock_session):
    """Test share command handler with mocked session."""
    cmd = ShareCommand(file_list=('a.txt', 'b.txt'))
    result = await handle_share(cmd, session=mock_session)

    assert 'Shared Files' in result
    mock_session.share.assert_awaited_once_with(['a.txt', 'b.txt'])


@pytest.mark.asyncio
async def test_handle_open(mock_session):
    """Test open command handler with mocked session."""
    cmd = OpenCommand(locator='http://localhost:8080?id=abc')
    result = await handle_open(cmd, session=mock_session)

    assert 'Available Files' in result
    mock_session.open.assert_awaited_once_with('http://localhost:8080?id=abc')


@pytest.mark.asyncio
async def test_handle_download(mock_session):
    """Test download command handler with mocked session."""
    cmd = DownloadCommand(target='all', output_dir='out')
    result = await handle_download(cmd, session=mock_session)

    assert 'Successfully downloaded' in result
    mock_session.download.assert_awaited_once_with('all', 'out')


@pytest.mark.asyncio
async def test_handle_sweep(mock_session):
    result = await handle_sweep(SweepCommand(), session=mock_session)

    assert result == "Removed 0 expired shares"
    mock_session.sweep.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_handle_qr(mock_session):
    await handle_qr(QrCommand(text='hello', size=120), session=mock_session)

    mock_session.qr.assert_awaited_once_with('hello', 120, None)


@pytest.mark.asyncio
async def test_dispatch_routes_by_type(mock_session):
    await dispatch_command(OpenCommand(locator='abc'), mock_session)
    await dispatch_command(DownloadCommand(target=1), mock_session)

    mock_session.open.assert_awaited_once_with('abc')
    mock_session.download.assert_awaited_once_with(1, None)


@pytest.mark.asyncio
async def test_dispatch_unknown_type(mock_session):
    result = await dispatch_command(object(), mock_session)
    assert result.startswith("Unknown command type")
