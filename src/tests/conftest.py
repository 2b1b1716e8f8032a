"""
Shared test fixtures for pytest
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from bridge import HostChannel, InProcessChannel, UIBridge
from document import DocumentAdapter, InMemoryDocument, TagService
from host import HostController
from layout import LayoutEngine
from repositories import DashboardRepository, NodeRepository
from services import cleanup_logging, setup_logging
from ui import DashboardSession


@pytest.fixture(autouse=True)
def setup_test_logging(tmp_path):
    """Setup logging for all tests"""
    setup_logging({"log_dir": str(tmp_path / "logs"), "console_level": "WARNING"})
    yield
    cleanup_logging()


@pytest.fixture
def document():
    """Empty in-memory document with a 1440x900 viewport"""
    return InMemoryDocument()


@pytest.fixture
def tags(document):
    return TagService(document, "smartbi-plugin")


@pytest.fixture
def adapter(document, tags):
    return DocumentAdapter(document, tags)


@pytest.fixture
def layout_engine():
    return LayoutEngine()


@pytest_asyncio.fixture
async def wired(document, adapter):
    """Host controller and UI bridge connected over an in-process channel"""
    channel = InProcessChannel()
    host_channel = HostChannel(channel.host)
    controller = HostController(host_channel, adapter, document)
    controller.initialize()
    await host_channel.start()

    bridge = UIBridge(channel.ui, request_timeout=2.0)
    await bridge.start()

    yield SimpleNamespace(
        channel=channel,
        host_channel=host_channel,
        controller=controller,
        bridge=bridge,
        document=document,
        adapter=adapter,
    )

    await bridge.stop()
    await host_channel.stop()
    controller.dispose()


@pytest_asyncio.fixture
async def session(wired):
    """Started DashboardSession over the wired host"""
    session = DashboardSession(
        wired.bridge,
        NodeRepository(),
        DashboardRepository(),
        LayoutEngine(),
    )
    await session.start()
    yield session
    session.stop()
