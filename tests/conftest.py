"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from skillsync.core.config import AtprotoSettings


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def atproto_settings() -> AtprotoSettings:
    return AtprotoSettings(
        public_base_url="https://app.example.com",
        default_pds_url="https://bsky.social",
        default_handle_suffix=".bsky.social",
        plc_directory_url="https://plc.directory",
        skill_collection="com.dreamtree.skill",
        sync_concurrency=2,
    )


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "skillsync.db")
