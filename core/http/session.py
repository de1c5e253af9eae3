"""HTTP session management for aiohttp.

This module provides shared aiohttp ClientSession management with proper
handling of process forks and event loop changes.
"""

from __future__ import annotations

import asyncio
import logging
import os

import aiohttp

from core.constants import (
    HTTP_CONNECTION_LIMIT,
    HTTP_TIMEOUT_CONNECT,
    HTTP_TIMEOUT_SOCK_READ,
    HTTP_TIMEOUT_TOTAL,
)

logger = logging.getLogger(__name__)


class SessionState:
    """State container for the shared aiohttp session."""

    session: aiohttp.ClientSession | None = None
    session_owner_pid: int | None = None


def _discard_inherited_session(current_pid: int) -> None:
    # A session created before a fork is bound to the parent's loop and sockets.
    logger.debug(
        "Discarding inherited session from parent process %s in child process %s",
        SessionState.session_owner_pid,
        current_pid,
    )
    SessionState.session = None
    SessionState.session_owner_pid = None


async def _drop_session_from_stale_loop() -> None:
    session = SessionState.session
    if session is None:
        return
    try:
        current_loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    if session.loop is current_loop and not session.loop.is_closed():
        return

    logger.info("Detected event loop change. Creating new session.")
    try:
        if not session.closed and not session.loop.is_closed():
            await session.close()
    except Exception as e:
        logger.warning("Error closing stale session: %s", e)
    SessionState.session = None


async def get_session() -> aiohttp.ClientSession:
    """Get or create a shared aiohttp ClientSession.

    Sessions are per-process and per-event-loop; a session inherited across a
    fork or left over from a closed loop is replaced.

    Returns:
        Shared aiohttp ClientSession for the current process.
    """
    current_pid = os.getpid()

    if (
        SessionState.session is not None
        and current_pid != SessionState.session_owner_pid
    ):
        _discard_inherited_session(current_pid)

    await _drop_session_from_stale_loop()

    if SessionState.session is None or SessionState.session.closed:
        timeout = aiohttp.ClientTimeout(
            total=HTTP_TIMEOUT_TOTAL,
            connect=HTTP_TIMEOUT_CONNECT,
            sock_read=HTTP_TIMEOUT_SOCK_READ,
        )
        headers = {
            "User-Agent": "MapScreen/1.0",
            "Accept": "application/json",
        }
        connector = aiohttp.TCPConnector(
            limit=HTTP_CONNECTION_LIMIT,
            enable_cleanup_closed=True,
        )
        SessionState.session = aiohttp.ClientSession(
            timeout=timeout,
            headers=headers,
            connector=connector,
        )
        SessionState.session_owner_pid = current_pid
        logger.debug("Created new aiohttp session for process %s", current_pid)

    return SessionState.session


async def cleanup_session() -> None:
    """Close the shared session for the current process."""
    if SessionState.session and not SessionState.session.closed:
        try:
            await SessionState.session.close()
            logger.info("Closed aiohttp session for process %s", os.getpid())
        except Exception as e:
            logger.warning("Error closing session: %s", e)

    SessionState.session = None
    SessionState.session_owner_pid = None
