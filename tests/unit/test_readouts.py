import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from powerdash_renderer.readouts import build_readouts
from powerdash_telemetry.models import CpuCore, Gpu, Snapshot


class ReadoutTests(unittest.TestCase):
    def test_neutral_fallback_without_snapshot(self):
        r = build_readouts(None)
        self.assertEqual(r.cpu_power, "0 W")
        self.assertEqual(r.gpu_power, "0 W")
        self.assertEqual(r.total_power, "0 W")
        self.assertEqual(r.memory_used, "0 B")
        self.assertEqual(r.memory_total, "0 B")
        self.assertEqual(r.memory_percent, 0.0)
        self.assertEqual(r.cores, ())

    def test_readouts_from_snapshot(self):
        snap = Snapshot(
            timestamp=1.0,
            cpu_cores=(CpuCore(id=0, frequency=3200.0, usage=12.34), CpuCore(id=1, frequency=2400.0, usage=50.0)),
            total_cpu_power=45.3,
            total_gpu_power=0.002,
            total_gpu_usage=33.33,
            gpus=(Gpu(id=0, power=0.002, frequency=389.0, usage=33.33),),
            memory_total=16 * 1024**3,
            memory_used=4 * 1024**3,
            carbon_intensity=100.0,
        )
        r = build_readouts(snap)
        self.assertEqual(r.cpu_power, "45.30 W")
        self.assertEqual(r.gpu_power, "2 mW")
        self.assertEqual(r.total_power, "45.30 W")
        self.assertEqual(r.memory_used, "4.00 GB")
        self.assertEqual(r.memory_total, "16.00 GB")
        self.assertEqual(r.memory_percent, 25.0)
        self.assertEqual(r.carbon_intensity, "100.00 gCO2/kWh")
        self.assertEqual(r.gpu_usage_text, "33.3%")
        self.assertEqual(r.cores[0].usage_text, "12.3%")
        self.assertEqual(r.cores[0].frequency_text, "3200 MHz")
        self.assertEqual(r.cores[1].color, "hsl(180, 70%, 50%)")
        self.assertEqual(r.gpus[0].power_text, "2 mW")
        self.assertEqual(r.gpus[0].color, "hsl(200, 70%, 50%)")

    def test_to_dict_is_json_shaped(self):
        data = build_readouts(None).to_dict()
        self.assertEqual(data["cpu_power"], "0 W")
        self.assertEqual(data["cores"], ())


if __name__ == "__main__":
    unittest.main()
