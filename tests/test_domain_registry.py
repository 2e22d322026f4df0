import random
import threading
import unittest

from ytblock.services.domain_registry import DomainRegistry


class DomainRegistryTests(unittest.TestCase):
    def test_insert_counts_occurrences(self):
        registry = DomainRegistry()
        registry.insert("r1---sn-a.googlevideo.com")
        registry.insert("r1---sn-a.googlevideo.com")
        registry.insert("r2---sn-b.googlevideo.com")

        self.assertEqual(
            registry.domains(),
            {"r1---sn-a.googlevideo.com": 2, "r2---sn-b.googlevideo.com": 1},
        )
        self.assertEqual(len(registry), 2)
        self.assertEqual(registry.count("r1---sn-a.googlevideo.com"), 2)
        self.assertEqual(registry.count("missing"), 0)

    def test_blocklist_string_is_space_separated_distinct_keys(self):
        registry = DomainRegistry()
        self.assertEqual(registry.to_blocklist_string(), "")
        registry.insert_many(["a.googlevideo.com", "b.googlevideo.com", "a.googlevideo.com"])
        rendered = registry.to_blocklist_string()
        self.assertNotIn("  ", rendered)
        self.assertEqual(rendered.strip(), rendered)
        self.assertEqual(sorted(rendered.split(" ")), ["a.googlevideo.com", "b.googlevideo.com"])

    def test_domains_returns_snapshot_copy(self):
        registry = DomainRegistry()
        registry.insert("a")
        snapshot = registry.domains()
        snapshot["a"] = 100
        snapshot["b"] = 1
        self.assertEqual(registry.domains(), {"a": 1})

    def test_insert_many_empty_is_noop(self):
        registry = DomainRegistry()
        self.assertEqual(registry.insert_many([]), 0)
        self.assertEqual(registry.domains(), {})

    def test_concurrent_inserts_lose_no_updates(self):
        registry = DomainRegistry()
        workers = 200
        per_worker = 200
        start = threading.Barrier(workers)

        def _worker():
            start.wait()
            for _ in range(per_worker):
                registry.insert("r5---sn-hot.googlevideo.com")

        threads = [threading.Thread(target=_worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(registry.domains(), {"r5---sn-hot.googlevideo.com": workers * per_worker})

    def test_final_map_independent_of_insert_order(self):
        inserts = [f"r{i % 7}---sn-x{i % 13}.googlevideo.com" for i in range(500)]
        shuffled = list(inserts)
        random.Random(42).shuffle(shuffled)

        first = DomainRegistry()
        second = DomainRegistry()
        for domain in inserts:
            first.insert(domain)
        for domain in shuffled:
            second.insert(domain)

        self.assertEqual(first.domains(), second.domains())


if __name__ == "__main__":
    unittest.main()
