# src/main.py
"""
SmartBi entry point.

Subcommands:
    host  - run the host process: in-memory document behind a websocket bridge
    demo  - run host and UI in one event loop over an in-process channel,
            build a dashboard with three charts and log the final snapshot
"""

import argparse
import asyncio
import json
import logging
import signal
import sys

from bridge.host_channel import HostChannel
from bridge.server import HostServer
from bridge.transport import InProcessChannel
from bridge.ui_bridge import UIBridge
from charts.renderer import ChartRenderer
from charts.types import ChartType
from config import DASHBOARD, AppConfig, ConfigError
from document.adapter import DocumentAdapter
from document.memory import InMemoryDocument
from document.tags import TagService
from host.controller import HostController
from layout.engine import LayoutEngine
from models.nodes import FrameConfig
from repositories.dashboard_repository import DashboardRepository
from repositories.node_repository import NodeRepository
from services.logger import cleanup_logging, setup_logging
from ui.session import DashboardSession

logger = logging.getLogger(__name__)

DEMO_CHARTS = (ChartType.BAR, ChartType.LINE, ChartType.PIE)


class HostRunner:
    """
    Runs the host process until interrupted.

    Usage:
        runner = HostRunner(AppConfig())
        await runner.start()  # Runs until Ctrl+C
    """

    def __init__(self, config: AppConfig, document: InMemoryDocument | None = None):
        self.config = config
        self.document = document or InMemoryDocument()
        self.adapter = DocumentAdapter(self.document, TagService(self.document, config.plugin_id))
        self.server = HostServer(self._bind_channel, host=config.host, port=config.port)
        self._running = False

        logger.info("HostRunner initialized")

    def _bind_channel(self, channel: HostChannel):
        controller = HostController(channel, self.adapter, self.document)
        controller.initialize()
        return controller.dispose

    async def start(self) -> None:
        self._running = True
        logger.info(f"Starting host on {self.config.ws_url}")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(self.stop()))

        await self.server.start()

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("Stopping host...")
        await self.server.stop()

    def get_status(self) -> dict:
        return {
            "running": self._running,
            "server": self.server.get_stats(),
            "nodes": self.document.node_count,
        }


async def run_demo(config: AppConfig) -> dict:
    """
    Drive a full create-dashboard-and-charts session in one process.

    Returns:
        The final snapshot as a wire dict
    """
    channel = InProcessChannel()

    document = InMemoryDocument()
    adapter = DocumentAdapter(document, TagService(document, config.plugin_id))
    host_channel = HostChannel(channel.host)
    controller = HostController(host_channel, adapter, document)
    controller.initialize()
    await host_channel.start()

    bridge = UIBridge(channel.ui, request_timeout=config.request_timeout)
    await bridge.start()
    session = DashboardSession(
        bridge,
        NodeRepository(),
        DashboardRepository(),
        LayoutEngine(),
        renderer=ChartRenderer(),
    )

    try:
        await session.start()
        reply = await session.create_node(
            FrameConfig(name=DASHBOARD["name"], width=DASHBOARD["width"], height=DASHBOARD["height"])
        )
        if not reply.success:
            raise RuntimeError(f"Dashboard creation failed: {reply.error}")

        for chart_type in DEMO_CHARTS:
            reply = await session.import_chart(chart_type)
            if not reply.success:
                raise RuntimeError(f"{chart_type} chart failed: {reply.error}")

        dashboard = session.dashboards.selected_dashboard
        for visual in session.dashboards.get_visuals_for_dashboard(dashboard.id):
            logger.info(
                f"  {visual.name}: {visual.width:g}x{visual.height:g} at ({visual.x:g}, {visual.y:g})"
            )
        return adapter.snapshot().to_wire()
    finally:
        session.stop()
        await bridge.stop()
        await host_channel.stop()
        controller.dispose()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="SmartBi dashboard host")
    parser.add_argument("--log-level", help="Override SMARTBI_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    host_parser = subparsers.add_parser("host", help="Run the host process")
    host_parser.add_argument("--host", help="Bind address")
    host_parser.add_argument("--port", type=int, help="Websocket port")

    demo_parser = subparsers.add_parser("demo", help="Run host and UI in one process")
    demo_parser.add_argument("--json", action="store_true", help="Print the final snapshot as JSON")

    args = parser.parse_args(argv)

    config = AppConfig()
    if args.log_level:
        config.log_level = args.log_level
    if getattr(args, "host", None):
        config.host = args.host
    if getattr(args, "port", None):
        config.port = args.port

    try:
        config.validate()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.logging_config())
    try:
        if args.command == "host":
            asyncio.run(HostRunner(config).start())
        else:
            snapshot = asyncio.run(run_demo(config))
            if args.json:
                print(json.dumps(snapshot, indent=2))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        cleanup_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
