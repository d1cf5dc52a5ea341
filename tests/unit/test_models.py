import sys
import unittest
from dataclasses import FrozenInstanceError
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from powerdash_telemetry.models import CpuCore, Gpu, Snapshot

PAYLOAD = {
    "timestamp": 1700000000,
    "cpu_cores": [
        {"id": 0, "frequency": 3200.0, "usage": 12.5, "temperature": 0.0},
        {"id": 1, "frequency": 2400.0, "usage": 50.0, "temperature": 0.0},
    ],
    "total_cpu_power": 4.5,
    "total_gpu_power": 0.25,
    "total_gpu_usage": 10.0,
    "gpus": [{"id": 0, "power": 0.25, "frequency": 389.0, "usage": 10.0}],
    "memory_total": 1000,
    "memory_used": 250,
    "carbon_intensity": 100.0,
}


class SnapshotTests(unittest.TestCase):
    def test_from_dict(self):
        snap = Snapshot.from_dict(PAYLOAD)
        self.assertEqual(snap.timestamp, 1700000000.0)
        self.assertEqual(snap.cpu_cores[1], CpuCore(id=1, frequency=2400.0, usage=50.0, temperature=0.0))
        self.assertEqual(snap.gpus, (Gpu(id=0, power=0.25, frequency=389.0, usage=10.0),))
        self.assertEqual(snap.memory_percent, 25.0)
        self.assertEqual(snap.total_power, 4.75)

    def test_to_dict_matches_payload_shape(self):
        data = Snapshot.from_dict(PAYLOAD).to_dict()
        self.assertEqual(data["cpu_cores"][0]["usage"], 12.5)
        self.assertEqual(set(data), set(PAYLOAD))

    def test_from_dict_rejects_missing_timestamp(self):
        with self.assertRaises(ValueError):
            Snapshot.from_dict({"cpu_cores": []})

    def test_core_lookup_by_id(self):
        snap = Snapshot(
            timestamp=0,
            cpu_cores=(CpuCore(id=2, frequency=0, usage=1), CpuCore(id=0, frequency=0, usage=2)),
        )
        self.assertEqual(snap.core(2).usage, 1)
        self.assertEqual(snap.core(0).usage, 2)
        self.assertIsNone(snap.core(1))
        self.assertIsNone(snap.core(-1))

    def test_zero_memory_total(self):
        self.assertEqual(Snapshot(timestamp=0).memory_percent, 0.0)

    def test_is_immutable(self):
        snap = Snapshot(timestamp=0)
        with self.assertRaises(FrozenInstanceError):
            snap.timestamp = 1  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
