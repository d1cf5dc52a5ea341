import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

try:
    from PIL import ImageColor
    from powerdash_renderer.dashboard import DashboardRenderer, build_view
except Exception:  # pragma: no cover
    DashboardRenderer = None

from powerdash_renderer.themes import DEFAULT_THEME_NAME, get_theme, list_themes
from powerdash_telemetry.models import CpuCore, Gpu, Snapshot


def _snap(ts: float, cores: int) -> Snapshot:
    return Snapshot(
        timestamp=ts,
        cpu_cores=tuple(CpuCore(id=i, frequency=1000.0, usage=10.0 * i) for i in range(cores)),
        total_cpu_power=5.0 + ts,
        total_gpu_power=0.5,
        memory_total=1024,
        memory_used=512,
        carbon_intensity=100.0,
    )


class DashboardRendererTests(unittest.TestCase):
    def setUp(self):
        if DashboardRenderer is None:
            self.skipTest("Pillow not installed")

    def test_build_view(self):
        window = [_snap(1, 2), _snap(2, 4)]
        view = build_view(window[-1], window, None)
        self.assertEqual(view.readouts.cpu_power, "7.00 W")
        self.assertEqual(len(view.power.labels), 2)
        self.assertEqual(len(view.cores), 4)
        self.assertEqual(view.cores[3].values, (None, 30.0))

    def test_render_image_size(self):
        window = [_snap(i, 4) for i in range(5)]
        view = build_view(window[-1], window, "Failed to fetch metrics: boom")
        image = DashboardRenderer(width=640, height=480).render_image(view)
        self.assertEqual(image.size, (640, 480))

    def test_render_png_without_data(self):
        png = DashboardRenderer().render_png(build_view(None, [], None), "Paper")
        self.assertTrue(png.startswith(b"\x89PNG"))

    def test_core_and_gpu_readouts_are_drawn(self):
        current = Snapshot(
            timestamp=1.0,
            cpu_cores=tuple(CpuCore(id=i, frequency=3200.0, usage=50.0) for i in range(4)),
            total_gpu_usage=40.0,
            gpus=(Gpu(id=0, power=5.0, frequency=1200.0, usage=60.0), Gpu(id=1, power=2.0, frequency=900.0, usage=30.0)),
        )
        view = build_view(current, [current], None)
        renderer = DashboardRenderer()
        image = renderer.render_image(view)
        layout = renderer.layout(view)
        grid = ImageColor.getrgb(get_theme(None).grid)

        cores = renderer.core_bars(view, layout.core_panel)
        self.assertEqual([c.core_id for c, _box in cores], [0, 1, 2, 3])
        for core, (x0, y0, x1, y1) in cores:
            mid = (y0 + y1) // 2
            self.assertEqual(image.getpixel((x0 + 1, mid)), ImageColor.getrgb(core.color))
            self.assertEqual(image.getpixel((x1 - 1, mid)), grid)
        self.assertNotEqual(cores[0][0].color, cores[1][0].color)

        gpus = renderer.gpu_bars(view, layout.gpu_panel)
        self.assertEqual(len(gpus), 2)
        for gpu, (x0, y0, _x1, y1) in gpus:
            self.assertEqual(image.getpixel((x0 + 1, (y0 + y1) // 2)), ImageColor.getrgb(gpu.color))

        ax0, ay0, _ax1, ay1 = renderer.gpu_average_bar(layout.gpu_panel)
        self.assertEqual(image.getpixel((ax0 + 1, (ay0 + ay1) // 2)), ImageColor.getrgb(get_theme(None).gpu_line))

    def test_core_grid_limits_visible_cells(self):
        view = build_view(_snap(1, 20), [_snap(1, 20)], None)
        renderer = DashboardRenderer()
        layout = renderer.layout(view)
        self.assertEqual(len(renderer.core_bars(view, layout.core_panel)), 12)
        self.assertIsNotNone(layout.power_chart)
        renderer.render_image(view)

    def test_small_canvas_skips_charts(self):
        view = build_view(None, [], "Failed to fetch metrics: boom")
        layout = DashboardRenderer(width=640, height=480).layout(view)
        self.assertIsNone(layout.power_chart)
        self.assertIsNone(layout.usage_chart)


class ThemeTests(unittest.TestCase):
    def test_unknown_theme_falls_back(self):
        self.assertEqual(get_theme("nope").name, DEFAULT_THEME_NAME)
        self.assertEqual(get_theme(None).name, DEFAULT_THEME_NAME)
        self.assertIn("Paper", list_themes())


if __name__ == "__main__":
    unittest.main()
