"""Dashboard image composer: power readouts, memory bar, CPU and GPU metrics, live charts."""

from __future__ import annotations

from io import BytesIO
from typing import Sequence

from PIL import Image, ImageDraw, ImageFont

from powerdash_telemetry.models import Snapshot

from .models import DashboardLayout, DashboardView, ThemeConfig
from .readouts import CoreReadout, GpuReadout, build_readouts
from .series import DEFAULT_TIME_FORMAT, build_core_series, build_power_series
from .themes import get_theme

Box = tuple[int, int, int, int]
Dataset = tuple[str, str, Sequence[float | None]]

READOUT_PANEL_HEIGHT = 200
CORE_COLUMNS = 4
CORE_CELL_HEIGHT = 44
GPU_ROW_HEIGHT = 40
MIN_CHART_HEIGHT = 120


def build_view(
    current: Snapshot | None,
    window: Sequence[Snapshot],
    error: str | None = None,
    time_format: str = DEFAULT_TIME_FORMAT,
) -> DashboardView:
    return DashboardView(
        readouts=build_readouts(current),
        power=build_power_series(window, time_format),
        cores=build_core_series(window, current),
        error=error,
    )


class DashboardRenderer:
    """Draws the dashboard with Pillow; used for the desktop preview and PNG export."""

    def __init__(self, width: int = 960, height: int = 820) -> None:
        self.width = width
        self.height = height

    def layout(self, view: DashboardView) -> DashboardLayout:
        top = 64 + (40 if view.error else 0)
        half = self.width // 2
        panel_top = top + 130
        panel_bottom = panel_top + READOUT_PANEL_HEIGHT
        chart_top = panel_bottom + 12
        power_chart = usage_chart = None
        # Small previews drop the charts rather than squashing them.
        if self.height - 20 - chart_top >= MIN_CHART_HEIGHT:
            power_chart = (20, chart_top, half - 10, self.height - 20)
            usage_chart = (half + 10, chart_top, self.width - 20, self.height - 20)
        return DashboardLayout(
            cards_top=top,
            core_panel=(20, panel_top, half - 10, panel_bottom),
            gpu_panel=(half + 10, panel_top, self.width - 20, panel_bottom),
            power_chart=power_chart,
            usage_chart=usage_chart,
        )

    def core_bars(self, view: DashboardView, panel: Box) -> list[tuple[CoreReadout, Box]]:
        """Usage bar track for each core that fits in ``panel``, in readout order."""
        x0, y0, x1, y1 = panel
        cell_w = (x1 - x0 - 24 - (CORE_COLUMNS - 1) * 10) // CORE_COLUMNS
        rows = max(0, (y1 - y0 - 40) // CORE_CELL_HEIGHT)
        out: list[tuple[CoreReadout, Box]] = []
        for idx, core in enumerate(view.readouts.cores[: rows * CORE_COLUMNS]):
            row, col = divmod(idx, CORE_COLUMNS)
            cx = x0 + 12 + col * (cell_w + 10)
            cy = y0 + 32 + row * CORE_CELL_HEIGHT
            out.append((core, (cx, cy + 30, cx + cell_w, cy + 36)))
        return out

    def gpu_average_bar(self, panel: Box) -> Box:
        x0, y0, x1, _y1 = panel
        return (x0 + 12, y0 + 50, x1 - 12, y0 + 58)

    def gpu_bars(self, view: DashboardView, panel: Box) -> list[tuple[GpuReadout, Box]]:
        """Usage bar track for each GPU row that fits in ``panel``."""
        x0, y0, x1, y1 = panel
        rows = max(0, (y1 - y0 - 78) // GPU_ROW_HEIGHT)
        out: list[tuple[GpuReadout, Box]] = []
        for idx, gpu in enumerate(view.readouts.gpus[:rows]):
            ry = y0 + 70 + idx * GPU_ROW_HEIGHT
            out.append((gpu, (x0 + 12, ry + 18, x1 - 12, ry + 24)))
        return out

    def render_image(self, view: DashboardView, theme_name: str | None = None) -> Image.Image:
        theme = get_theme(theme_name)
        image = Image.new("RGB", (self.width, self.height), theme.background)
        draw = ImageDraw.Draw(image)
        layout = self.layout(view)

        self._draw_header(draw, theme)
        if view.error:
            self._draw_error(draw, theme, view.error, 64)
        self._draw_cards(draw, theme, view, layout.cards_top)
        self._draw_cores(draw, theme, view, layout.core_panel)
        self._draw_gpus(draw, theme, view, layout.gpu_panel)
        if layout.power_chart is not None:
            self._draw_chart(
                draw,
                theme,
                layout.power_chart,
                "Power (W)",
                view.power.labels,
                [
                    ("CPU Power", theme.cpu_line, view.power.cpu_power),
                    ("GPU Power", theme.gpu_line, view.power.gpu_power),
                ],
            )
        if layout.usage_chart is not None:
            self._draw_chart(
                draw,
                theme,
                layout.usage_chart,
                "CPU usage (%)",
                view.power.labels,
                [(c.label, c.color, c.values) for c in view.cores],
            )
        return image

    def render_png(self, view: DashboardView, theme_name: str | None = None) -> bytes:
        buf = BytesIO()
        self.render_image(view, theme_name).save(buf, format="PNG")
        return buf.getvalue()

    def _font(self, size: int, mono: bool = False):
        preferred = "DejaVuSansMono.ttf" if mono else "DejaVuSans.ttf"
        try:
            return ImageFont.truetype(preferred, size)
        except Exception:
            try:
                return ImageFont.truetype("Arial.ttf", size)
            except Exception:
                return ImageFont.load_default()

    def _draw_header(self, draw: ImageDraw.ImageDraw, theme: ThemeConfig) -> None:
        draw.text((20, 16), "System Monitor", font=self._font(28), fill=theme.text_primary)

    def _draw_error(self, draw: ImageDraw.ImageDraw, theme: ThemeConfig, message: str, top: int) -> None:
        draw.rounded_rectangle((20, top, self.width - 20, top + 30), radius=8, fill=theme.error_bg)
        draw.text((32, top + 7), message[:120], font=self._font(14), fill=theme.text_primary)

    def _draw_cards(self, draw: ImageDraw.ImageDraw, theme: ThemeConfig, view: DashboardView, top: int) -> None:
        r = view.readouts
        cards = [
            ("CPU POWER", r.cpu_power),
            ("GPU POWER", r.gpu_power),
            ("TOTAL", r.total_power),
            ("CARBON", r.carbon_intensity),
        ]
        card_w = (self.width - 40 - 3 * 12) // 4
        for idx, (title, value) in enumerate(cards):
            x0 = 20 + idx * (card_w + 12)
            draw.rounded_rectangle((x0, top, x0 + card_w, top + 70), radius=12, fill=theme.card_bg)
            draw.text((x0 + 12, top + 8), title, font=self._font(13, mono=True), fill=theme.text_secondary)
            draw.text((x0 + 12, top + 32), value, font=self._font(22, mono=True), fill=theme.text_primary)

        bar_top = top + 84
        draw.text((20, bar_top), f"Memory {r.memory_used} / {r.memory_total}", font=self._font(13, mono=True), fill=theme.text_secondary)
        bar = (20, bar_top + 20, self.width - 20, bar_top + 32)
        draw.rounded_rectangle(bar, radius=6, fill=theme.card_bg)
        filled = int((bar[2] - bar[0]) * max(0.0, min(r.memory_percent, 100.0)) / 100.0)
        if filled > 0:
            draw.rounded_rectangle((bar[0], bar[1], bar[0] + filled, bar[3]), radius=6, fill=theme.memory_bar)

    def _draw_cores(self, draw: ImageDraw.ImageDraw, theme: ThemeConfig, view: DashboardView, panel: Box) -> None:
        x0, y0, x1, _y1 = panel
        draw.rounded_rectangle(panel, radius=12, fill=theme.card_bg)
        draw.text((x0 + 12, y0 + 8), "CPU Metrics", font=self._font(14), fill=theme.text_secondary)

        small = self._font(11, mono=True)
        bars = self.core_bars(view, panel)
        if not bars:
            draw.text((x0 + 12, y0 + 36), "No CPU data", font=small, fill=theme.text_secondary)
            return
        for core, track in bars:
            bx0, by0 = track[0], track[1]
            draw.text((bx0, by0 - 30), f"Core {core.core_id} {core.usage_text}", font=small, fill=theme.text_primary)
            draw.text((bx0, by0 - 16), core.frequency_text, font=small, fill=theme.text_secondary)
            self._draw_bar(draw, track, core.usage, core.color, theme.grid)

        hidden = len(view.readouts.cores) - len(bars)
        if hidden > 0:
            draw.text((x1 - 70, y0 + 10), f"+{hidden} more", font=small, fill=theme.text_secondary)

    def _draw_gpus(self, draw: ImageDraw.ImageDraw, theme: ThemeConfig, view: DashboardView, panel: Box) -> None:
        x0, y0, x1, _y1 = panel
        r = view.readouts
        draw.rounded_rectangle(panel, radius=12, fill=theme.card_bg)
        draw.text((x0 + 12, y0 + 8), "GPU Metrics", font=self._font(14), fill=theme.text_secondary)

        small = self._font(11, mono=True)
        draw.text((x0 + 12, y0 + 34), f"Average usage {r.gpu_usage_text}", font=small, fill=theme.text_primary)
        self._draw_bar(draw, self.gpu_average_bar(panel), r.gpu_usage, theme.gpu_line, theme.grid)

        bars = self.gpu_bars(view, panel)
        if not r.gpus:
            draw.text((x0 + 12, y0 + 72), "No GPU data", font=small, fill=theme.text_secondary)
            return
        for gpu, track in bars:
            line = f"GPU {gpu.gpu_id}  {gpu.usage_text}  {gpu.frequency_text}  {gpu.power_text}"
            draw.text((track[0], track[1] - 16), line, font=small, fill=theme.text_primary)
            self._draw_bar(draw, track, gpu.usage, gpu.color, theme.grid)

        hidden = len(r.gpus) - len(bars)
        if hidden > 0:
            draw.text((x1 - 70, y0 + 10), f"+{hidden} more", font=small, fill=theme.text_secondary)

    @staticmethod
    def _draw_bar(draw: ImageDraw.ImageDraw, track: Box, percent: float, color: str, track_color: str) -> None:
        draw.rectangle(track, fill=track_color)
        filled = int((track[2] - track[0]) * max(0.0, min(percent, 100.0)) / 100.0)
        if filled > 0:
            draw.rectangle((track[0], track[1], track[0] + filled - 1, track[3]), fill=color)

    def _draw_chart(
        self,
        draw: ImageDraw.ImageDraw,
        theme: ThemeConfig,
        box: Box,
        title: str,
        labels: Sequence[str],
        datasets: list[Dataset],
    ) -> None:
        x0, y0, x1, y1 = box
        draw.rounded_rectangle(box, radius=12, fill=theme.card_bg)
        draw.text((x0 + 12, y0 + 8), title, font=self._font(14), fill=theme.text_secondary)

        px0, py0, px1, py1 = x0 + 48, y0 + 34, x1 - 14, y1 - 44
        values = [v for _name, _color, vals in datasets for v in vals if v is not None]
        # y axis always begins at zero.
        top = max(values, default=0.0)
        if top <= 0:
            top = 1.0

        small = self._font(11, mono=True)
        for step in range(5):
            y = py1 - (py1 - py0) * step / 4
            draw.line((px0, y, px1, y), fill=theme.grid, width=1)
            draw.text((x0 + 8, y - 6), f"{top * step / 4:.1f}", font=small, fill=theme.text_secondary)

        n = len(labels)
        dx = (px1 - px0) / max(n - 1, 1)
        for _name, color, vals in datasets:
            segment: list[tuple[float, float]] = []
            for i, v in enumerate(vals):
                if v is None:
                    self._stroke(draw, segment, color)
                    segment = []
                    continue
                segment.append((px0 + i * dx, py1 - (py1 - py0) * (v / top)))
            self._stroke(draw, segment, color)

        if labels:
            draw.text((px0, py1 + 6), labels[0], font=small, fill=theme.text_secondary)
            draw.text((px1 - 52, py1 + 6), labels[-1], font=small, fill=theme.text_secondary)

        lx = px0
        for name, color, _vals in datasets[:8]:
            draw.rectangle((lx, y1 - 18, lx + 10, y1 - 8), fill=color)
            draw.text((lx + 14, y1 - 20), name, font=small, fill=theme.text_secondary)
            lx += 14 + int(draw.textlength(name, font=small)) + 12
            if lx > x1 - 40:
                break

    @staticmethod
    def _stroke(draw: ImageDraw.ImageDraw, points: list[tuple[float, float]], color: str) -> None:
        if len(points) >= 2:
            draw.line(points, fill=color, width=2)
        elif len(points) == 1:
            x, y = points[0]
            draw.ellipse((x - 2, y - 2, x + 2, y + 2), fill=color)
