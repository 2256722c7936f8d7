"""Command handler functions for shell operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    DownloadCommand,
    OpenCommand,
    QrCommand,
    ShareCommand,
    SweepCommand,
)
from cli.session import AirdropSession

logger = get_logger(__name__)


_session: Optional[AirdropSession] = None


def get_session() -> AirdropSession:
    """
    Get or create global AirdropSession instance.

    Returns:
        AirdropSession instance
    """
    global _session
    if _session is None:
        logger.debug("Creating new AirdropSession instance")
        config = Config(Path.home() / '.airdrop' / 'config.json')
        _session = AirdropSession(config)
    return _session


async def handle_share(cmd: ShareCommand, session: Optional[AirdropSession] = None) -> str:
    """
    Handle 'share' command.

    Args:
        cmd: ShareCommand with file_list
        session: Optional AirdropSession for dependency injection (testing)

    Returns:
        Share summary or error message
    """
    logger.info(f"Executing share command: {len(cmd.file_list)} files")
    if session is None:
        session = get_session()
    return await session.share(list(cmd.file_list))


async def handle_open(cmd: OpenCommand, session: Optional[AirdropSession] = None) -> str:
    """
    Handle 'open' command.

    Args:
        cmd: OpenCommand with locator
        session: Optional AirdropSession for dependency injection (testing)

    Returns:
        File listing or not-found message
    """
    if session is None:
        session = get_session()
    return await session.open(cmd.locator)


async def handle_download(cmd: DownloadCommand, session: Optional[AirdropSession] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with target and optional output_dir
        session: Optional AirdropSession for dependency injection (testing)

    Returns:
        Success or error message
    """
    logger.info(f"Executing download command: target={cmd.target} output_dir={cmd.output_dir}")
    if session is None:
        session = get_session()
    return await session.download(cmd.target, cmd.output_dir)


async def handle_sweep(cmd: SweepCommand, session: Optional[AirdropSession] = None) -> str:
    if session is None:
        session = get_session()
    return await session.sweep()


async def handle_qr(cmd: QrCommand, session: Optional[AirdropSession] = None) -> str:
    if session is None:
        session = get_session()
    return await session.qr(cmd.text, cmd.size, cmd.output_path)
