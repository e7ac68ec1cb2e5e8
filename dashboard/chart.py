"""Chart rendering with one reusable matplotlib figure per mount point."""

import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")  # Non-GUI backend

import matplotlib.pyplot as plt  # noqa: E402

logger = logging.getLogger(__name__)

CHART_KINDS = {"pie", "doughnut", "bar", "line", "gauge"}

PALETTE = [
    "#3b82f6", "#22c55e", "#f59e0b", "#ef4444", "#8b5cf6",
    "#06b6d4", "#ec4899", "#14b8a6", "#f97316", "#6366f1",
]


@dataclass(frozen=True)
class ChartSpec:
    """What to draw: chart kind plus labelled values."""
    kind: str
    labels: Sequence[str] = ()
    values: Sequence[float] = ()
    title: str = ""
    value_prefix: str = ""
    figsize: tuple = (8, 5)

    def __post_init__(self):
        if self.kind not in CHART_KINDS:
            raise ValueError(f"Unknown chart kind: {self.kind}")
        if len(self.labels) != len(self.values):
            raise ValueError("labels and values must have the same length")


@dataclass
class ChartHandle:
    """Live chart bound to a mount point."""
    mount_id: str
    figure: object
    spec: ChartSpec
    render_count: int = 0

    def to_png(self, dpi: int = 100) -> bytes:
        buf = io.BytesIO()
        self.figure.savefig(buf, format="png", dpi=dpi)
        buf.seek(0)
        return buf.getvalue()


def _draw(ax, spec: ChartSpec) -> None:
    labels = list(spec.labels)
    values = [float(v) for v in spec.values]

    if spec.kind == "gauge":
        value = max(0.0, min(100.0, values[0] if values else 0.0))
        color = "#22c55e" if value < 35 else "#f59e0b" if value < 65 else "#ef4444"
        ax.pie(
            [value, 100 - value, 100],
            startangle=180,
            counterclock=False,
            colors=[color, "#e5e7eb", "white"],
            wedgeprops={"width": 0.35},
        )
        ax.text(0, -0.15, f"{value:.0f}", ha="center", va="center", fontsize=22, fontweight="bold")
        ax.set_ylim(-0.3, 1.1)
        return

    if not values or sum(abs(v) for v in values) == 0:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)
        ax.set_axis_off()
        return

    colors = [PALETTE[i % len(PALETTE)] for i in range(len(values))]
    if spec.kind in ("pie", "doughnut"):
        wedgeprops = {"width": 0.45, "edgecolor": "white"} if spec.kind == "doughnut" else {"edgecolor": "white"}
        ax.pie(values, labels=labels, colors=colors, autopct="%1.1f%%", wedgeprops=wedgeprops)
        ax.axis("equal")
    elif spec.kind == "bar":
        ax.bar(labels, values, color=colors)
        ax.grid(True, axis="y", alpha=0.3)
        ax.tick_params(axis="x", rotation=30)
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda x, p: f"{spec.value_prefix}{x:,.0f}"))
    else:
        # Positional x so repeated labels stay separate points
        xs = list(range(len(values)))
        ax.plot(xs, values, marker="o", linewidth=2, markersize=4, color=PALETTE[0])
        ax.set_xticks(xs)
        ax.set_xticklabels(labels)
        ax.grid(True, alpha=0.3)
        ax.tick_params(axis="x", rotation=45)
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda x, p: f"{spec.value_prefix}{x:,.0f}"))


class ChartRegistry:
    """
    Tracks chart handles by mount id.

    upsert_chart() is idempotent per mount: the same figure is cleared and
    redrawn, so repeated renders never stack charts on one mount.
    """

    def __init__(self):
        self._handles: Dict[str, ChartHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, mount_id: str) -> bool:
        return mount_id in self._handles

    def get(self, mount_id: str) -> Optional[ChartHandle]:
        return self._handles.get(mount_id)

    def mounts(self) -> List[str]:
        return sorted(self._handles)

    def upsert_chart(self, mount_id: str, spec: ChartSpec) -> ChartHandle:
        """Create the chart for mount_id, or redraw the existing one in place."""
        handle = self._handles.get(mount_id)
        if handle is None:
            fig = plt.figure(figsize=spec.figsize)
            handle = ChartHandle(mount_id=mount_id, figure=fig, spec=spec)
            self._handles[mount_id] = handle
            logger.debug("Chart created on %s", mount_id)
        else:
            handle.figure.clf()
            handle.spec = spec

        ax = handle.figure.add_subplot(1, 1, 1)
        _draw(ax, spec)
        if spec.title:
            ax.set_title(spec.title, fontsize=14, fontweight="bold")
        handle.figure.tight_layout()
        handle.render_count += 1
        return handle

    def destroy(self, mount_id: str) -> bool:
        handle = self._handles.pop(mount_id, None)
        if handle is None:
            return False
        plt.close(handle.figure)
        logger.debug("Chart destroyed on %s", mount_id)
        return True

    def destroy_all(self) -> None:
        for mount_id in list(self._handles):
            self.destroy(mount_id)
