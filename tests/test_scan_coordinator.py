import asyncio
import gzip
import os
import tempfile
import unittest

from ytblock.core.exceptions import ScanSetupError
from ytblock.services import scan_coordinator as sc
from ytblock.services.file_scanner import FileScanner


class ScanCoordinatorTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.dir, name)
        with open(path, "wb") as fp:
            fp.write(data)
        return path

    def _write_scenario(self) -> None:
        self._write(
            "pihole.log.1",
            b"Jan  3 10:00:01 dnsmasq[512]: query[A] r4---sn-abcxyz.googlevideo.com from 192.168.1.20\n"
            b"no match here\n",
        )
        self._write(
            "pihole.log.2.gz",
            gzip.compress(b"r1---sn-foo.googlevideo.com r2---sn-bar.googlevideo.com\n"),
        )

    def test_mixed_plain_and_gzip_directory(self):
        self._write_scenario()

        result = sc.scan_directory(self.dir, "pihole.log")

        expected = {
            "r4---sn-abcxyz.googlevideo.com",
            "r1---sn-foo.googlevideo.com",
            "r2---sn-bar.googlevideo.com",
        }
        self.assertEqual(result.distinct_count, 3)
        self.assertEqual(set(result.domains), expected)
        self.assertEqual(set(result.blocklist.split(" ")), expected)
        self.assertEqual(result.failures, [])
        self.assertEqual(result.files_scanned, 2)
        self.assertGreaterEqual(result.elapsed_seconds, 0.0)

    def test_files_outside_prefix_and_directories_are_never_opened(self):
        self._write_scenario()
        self._write("other.log", b"r8---sn-ignored.googlevideo.com\n")
        os.mkdir(os.path.join(self.dir, "pihole.log.d"))

        opened = []

        def _factory(path, registry, extractor):
            opened.append(os.path.basename(path))
            return FileScanner(path, registry, extractor)

        coordinator = sc.ScanCoordinator(self.dir, "pihole.log", scanner_factory=_factory)
        result = asyncio.run(coordinator.run())

        self.assertEqual(sorted(opened), ["pihole.log.1", "pihole.log.2.gz"])
        self.assertNotIn("r8---sn-ignored.googlevideo.com", result.domains)

    def test_corrupt_gzip_fails_alone(self):
        self._write_scenario()
        bad = self._write("pihole.log.3.gz", b"\x1f\x8b\x08\x00garbage-not-deflate")

        result = sc.scan_directory(self.dir, "pihole.log")

        self.assertEqual(result.distinct_count, 3)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.failures[0].path, os.path.abspath(bad))
        self.assertTrue(result.failures[0].reason)
        statuses = {os.path.basename(o.path): o.status for o in result.files}
        self.assertEqual(statuses["pihole.log.3.gz"], "failed")
        self.assertEqual(statuses["pihole.log.1"], "ok")
        self.assertEqual(statuses["pihole.log.2.gz"], "ok")

    def test_crashing_task_is_recorded_as_failed_file(self):
        self._write_scenario()

        def _factory(path, registry, extractor):
            if path.endswith(".gz"):
                raise RuntimeError("boom")
            return FileScanner(path, registry, extractor)

        coordinator = sc.ScanCoordinator(self.dir, "pihole.log", scanner_factory=_factory)
        result = asyncio.run(coordinator.run())

        self.assertEqual(set(result.domains), {"r4---sn-abcxyz.googlevideo.com"})
        self.assertEqual(len(result.failures), 1)
        self.assertIn("boom", result.failures[0].reason)
        self.assertEqual(coordinator.active_tasks, 0)

    def test_counts_are_summed_across_files(self):
        for i in range(12):
            self._write(f"pihole.log.{i}", b"r1---sn-same.googlevideo.com\n" * 50)

        unbounded = sc.scan_directory(self.dir, "pihole.log")
        capped = sc.scan_directory(self.dir, "pihole.log", max_concurrency=2)

        self.assertEqual(unbounded.domains, {"r1---sn-same.googlevideo.com": 600})
        self.assertEqual(unbounded.domains, capped.domains)

    def test_state_machine_and_single_use(self):
        self._write_scenario()
        coordinator = sc.ScanCoordinator(self.dir, "pihole.log")
        self.assertIs(coordinator.state, sc.ScanState.IDLE)

        asyncio.run(coordinator.run())
        self.assertIs(coordinator.state, sc.ScanState.AGGREGATED)
        self.assertEqual(coordinator.active_tasks, 0)

        with self.assertRaises(RuntimeError):
            asyncio.run(coordinator.run())

    def test_empty_directory_gives_empty_result(self):
        result = sc.scan_directory(self.dir, "pihole.log")
        self.assertEqual(result.distinct_count, 0)
        self.assertEqual(result.blocklist, "")
        self.assertEqual(result.files, [])

    def test_missing_directory_is_setup_error(self):
        with self.assertRaises(ScanSetupError):
            sc.scan_directory(os.path.join(self.dir, "nope"), "pihole.log")

    def test_worker_count_respects_cap(self):
        coordinator = sc.ScanCoordinator(self.dir, "pihole.log", max_concurrency=4)
        self.assertEqual(coordinator._worker_count(10), 4)
        self.assertEqual(coordinator._worker_count(2), 2)
        unbounded = sc.ScanCoordinator(self.dir, "pihole.log")
        self.assertEqual(unbounded._worker_count(50), 50)


if __name__ == "__main__":
    unittest.main()
