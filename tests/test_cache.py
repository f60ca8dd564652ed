from __future__ import annotations

import json
import tempfile
import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from bind_framework_core import core as bind_core  # noqa: E402


class SingleFlightCacheTests(unittest.TestCase):
    def test_racing_callers_share_one_computation(self) -> None:
        cache: bind_core.SingleFlightCache[object] = bind_core.SingleFlightCache("test")
        workers = 8
        barrier = threading.Barrier(workers)
        calls = []
        calls_lock = threading.Lock()

        def compute() -> object:
            with calls_lock:
                calls.append(threading.get_ident())
            time.sleep(0.05)
            return object()

        def worker() -> object:
            barrier.wait(timeout=5)
            return cache.get_or_compute("spec.json", compute)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = [future.result(timeout=10) for future in [pool.submit(worker) for _ in range(workers)]]

        self.assertEqual(len(calls), 1)
        self.assertEqual(cache.computation_count("spec.json"), 1)
        self.assertTrue(all(result is results[0] for result in results))

    def test_failure_reaches_every_caller(self) -> None:
        cache: bind_core.SingleFlightCache[int] = bind_core.SingleFlightCache("test")
        workers = 4
        barrier = threading.Barrier(workers)

        def compute() -> int:
            time.sleep(0.05)
            raise bind_core.SpecificationParseError("broken spec")

        def worker() -> str:
            barrier.wait(timeout=5)
            try:
                cache.get_or_compute("bad.json", compute)
            except bind_core.SpecificationParseError as exc:
                return str(exc)
            return "no error"

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = [future.result(timeout=10) for future in [pool.submit(worker) for _ in range(workers)]]

        self.assertEqual(outcomes, ["broken spec"] * workers)
        self.assertEqual(cache.computation_count("bad.json"), 1)
        with self.assertRaises(bind_core.SpecificationParseError):
            cache.get_or_compute("bad.json", lambda: 1)

    def test_distinct_keys_do_not_wait_on_each_other(self) -> None:
        cache: bind_core.SingleFlightCache[str] = bind_core.SingleFlightCache("test")
        started = threading.Event()
        release = threading.Event()

        def slow() -> str:
            started.set()
            release.wait(timeout=5)
            return "slow"

        thread = threading.Thread(target=cache.get_or_compute, args=("a", slow))
        thread.start()
        try:
            self.assertTrue(started.wait(timeout=5))
            self.assertEqual(cache.get_or_compute("b", lambda: "fast"), "fast")
            self.assertFalse(release.is_set())
        finally:
            release.set()
            thread.join(timeout=5)
        self.assertEqual(cache.get_or_compute("a", lambda: "other"), "slow")
        self.assertEqual(len(cache), 2)


class ResourceCacheTests(unittest.TestCase):
    def test_equivalent_paths_share_one_parse(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "sub").mkdir()
            spec = root / "signatures.json"
            spec.write_text(
                json.dumps({"profiles": [{"name": "gl", "versions": ["1.0"], "functions": [], "enums": []}]}),
                encoding="utf-8",
            )
            typemap = root / "gl.typemap.json"
            typemap.write_text(json.dumps({"typemap": {"GLenum": "uint"}}), encoding="utf-8")

            cache = bind_core.ResourceCache()
            first = cache.get_profiles(spec)
            second = cache.get_profiles(root / "sub" / ".." / "signatures.json")
            cache.get_typemap(typemap)
            cache.get_typemap(typemap)

            self.assertIs(first, second)
            self.assertEqual(cache.profiles.computation_count(spec.resolve()), 1)
            self.assertEqual(cache.typemaps.computation_count(typemap.resolve()), 1)


if __name__ == "__main__":
    unittest.main()
