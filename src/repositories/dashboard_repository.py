"""
DashboardRepository - UI-side cache of dashboards and their visuals.

Orphan rule: a visual is only reported for a dashboard while that dashboard
is cached and lists the visual among its visual_ids (which the host derives
from child membership). A visual whose dashboard vanished, or which was
moved out of it, is excluded from dashboard queries.
"""

import logging
import threading
from collections.abc import Callable, Iterable

from models.entities import DashboardFrame, ViewportBounds, Visual
from models.geometry import Rect

logger = logging.getLogger(__name__)

Listener = Callable[["DashboardRepository"], None]


class DashboardRepository:
    """
    Cached dashboards, visuals, selected dashboard and viewport.

    Thread-safe: All state access is protected by lock.
    """

    def __init__(self):
        self._dashboards: tuple[DashboardFrame, ...] = ()
        self._visuals: tuple[Visual, ...] = ()
        self._selected_dashboard_id: str | None = None
        self._viewport: ViewportBounds | None = None
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

    # ========== Properties (Thread-safe getters) ==========

    @property
    def dashboards(self) -> tuple[DashboardFrame, ...]:
        with self._lock:
            return self._dashboards

    @property
    def visuals(self) -> tuple[Visual, ...]:
        with self._lock:
            return self._visuals

    @property
    def selected_dashboard_id(self) -> str | None:
        with self._lock:
            return self._selected_dashboard_id

    @property
    def selected_dashboard(self) -> DashboardFrame | None:
        with self._lock:
            if self._selected_dashboard_id is None:
                return None
            return self.get_dashboard(self._selected_dashboard_id)

    @property
    def viewport(self) -> ViewportBounds | None:
        with self._lock:
            return self._viewport

    # ========== Mutations ==========

    def replace_all(
        self,
        dashboards: Iterable[DashboardFrame],
        visuals: Iterable[Visual],
        viewport: ViewportBounds | None = None,
        notify: bool = True,
    ) -> None:
        """
        Swap in a full snapshot; nothing from the previous state survives.

        The selected dashboard is kept only if the snapshot still contains it.
        With notify=False the caller must call notify() afterwards.
        """
        dashboards = tuple(dashboards)
        visuals = tuple(visuals)
        with self._lock:
            self._dashboards = dashboards
            self._visuals = visuals
            self._viewport = viewport
            if self._selected_dashboard_id not in {d.id for d in dashboards}:
                self._selected_dashboard_id = None
        logger.debug(f"Replaced cache: {len(dashboards)} dashboards, {len(visuals)} visuals")
        if notify:
            self.notify()

    def set_dashboards(self, dashboards: Iterable[DashboardFrame]) -> None:
        with self._lock:
            self._dashboards = tuple(dashboards)
        self.notify()

    def add_dashboard(self, dashboard: DashboardFrame) -> None:
        with self._lock:
            kept = tuple(d for d in self._dashboards if d.id != dashboard.id)
            self._dashboards = kept + (dashboard,)
        self.notify()

    def remove_dashboard(self, dashboard_id: str) -> None:
        """Drop a dashboard and every visual pointing at it."""
        with self._lock:
            self._dashboards = tuple(d for d in self._dashboards if d.id != dashboard_id)
            self._visuals = tuple(v for v in self._visuals if v.dashboard_id != dashboard_id)
            if self._selected_dashboard_id == dashboard_id:
                self._selected_dashboard_id = None
        self.notify()

    def select_dashboard(self, dashboard_id: str | None) -> None:
        with self._lock:
            self._selected_dashboard_id = dashboard_id or None
        self.notify()

    def set_viewport(self, viewport: ViewportBounds | None) -> None:
        with self._lock:
            self._viewport = viewport
        self.notify()

    def set_visuals(self, visuals: Iterable[Visual]) -> None:
        with self._lock:
            self._visuals = tuple(visuals)
        self.notify()

    def add_visual(self, visual: Visual) -> None:
        """Cache a visual and record it on its dashboard's visual_ids."""
        with self._lock:
            kept = tuple(v for v in self._visuals if v.id != visual.id)
            self._visuals = kept + (visual,)
            self._dashboards = tuple(
                d.model_copy(update={"visual_ids": d.visual_ids + (visual.id,)})
                if d.id == visual.dashboard_id and visual.id not in d.visual_ids
                else d
                for d in self._dashboards
            )
        self.notify()

    def remove_visual(self, visual_id: str) -> None:
        with self._lock:
            self._visuals = tuple(v for v in self._visuals if v.id != visual_id)
            self._dashboards = tuple(
                d.model_copy(update={"visual_ids": tuple(i for i in d.visual_ids if i != visual_id)})
                if visual_id in d.visual_ids
                else d
                for d in self._dashboards
            )
        self.notify()

    def update_visual(self, visual_id: str, **changes) -> Visual | None:
        with self._lock:
            updated = None
            visuals = []
            for visual in self._visuals:
                if visual.id == visual_id:
                    updated = visual.model_copy(update=changes)
                    visuals.append(updated)
                else:
                    visuals.append(visual)
            if updated is None:
                return None
            self._visuals = tuple(visuals)
        self.notify()
        return updated

    # ========== Queries ==========

    def get_dashboard(self, dashboard_id: str) -> DashboardFrame | None:
        with self._lock:
            return next((d for d in self._dashboards if d.id == dashboard_id), None)

    def get_visual(self, visual_id: str) -> Visual | None:
        with self._lock:
            return next((v for v in self._visuals if v.id == visual_id), None)

    def get_visuals_for_dashboard(self, dashboard_id: str) -> tuple[Visual, ...]:
        """Visuals of a dashboard, excluding orphans."""
        with self._lock:
            dashboard = self.get_dashboard(dashboard_id)
            if dashboard is None:
                return ()
            members = set(dashboard.visual_ids)
            return tuple(
                v for v in self._visuals if v.dashboard_id == dashboard_id and v.id in members
            )

    def get_visual_rects(self, dashboard_id: str) -> list[Rect]:
        """Layout rectangles of a dashboard's visuals, relative to the dashboard."""
        return [v.rect for v in self.get_visuals_for_dashboard(dashboard_id)]

    def get_dashboard_for_visual(self, visual_id: str) -> DashboardFrame | None:
        with self._lock:
            visual = self.get_visual(visual_id)
            if visual is None:
                return None
            dashboard = self.get_dashboard(visual.dashboard_id)
            if dashboard is None or visual_id not in dashboard.visual_ids:
                return None
            return dashboard

    # ========== Change notification ==========

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Error in dashboard repository listener: {e}")
