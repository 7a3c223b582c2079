# benchmark.py
import os
import json
import time
import threading
import numpy as np

from cache import CacheConfig
from simulator import CacheSimulator
from tracefile import read_trace, generate_trace


def load_trace(trace_cfg):
    """
    Trace source from the "trace" section of the benchmark config: either
    {"path": "file.trace"} or generator parameters for generate_trace.
    """
    if "path" in trace_cfg:
        with open(trace_cfg["path"], "r") as f:
            return list(read_trace(f))
    if "pattern" in trace_cfg:
        return generate_trace(
            num_accesses=trace_cfg.get("num_accesses", 10000),
            pattern=trace_cfg["pattern"],
            working_set_bytes=trace_cfg.get("working_set_kb", 64) * 1024,
            store_ratio=trace_cfg.get("store_ratio", 0.2),
            seed=trace_cfg.get("random_seed", None),
            stride=trace_cfg.get("stride_bytes", 4),
        )
    raise ValueError("Trace config needs either 'path' or 'pattern'")


def summarize(name, config, stats, costs):
    cycles = np.asarray(costs, dtype=np.int64)
    summary = {"name": name, "config": config.describe()}
    summary.update(stats.as_dict())
    if cycles.size:
        summary["p50_cycles"] = float(np.percentile(cycles, 50))
        summary["p99_cycles"] = float(np.percentile(cycles, 99))
        summary["max_cycles"] = int(cycles.max())
    else:
        summary["p50_cycles"] = summary["p99_cycles"] = 0.0
        summary["max_cycles"] = 0
    return summary


class BenchmarkRunner:
    def __init__(self, cfg):
        self.cfg = cfg
        self.caches = []
        for i, cache_cfg in enumerate(cfg["caches"]):
            name = cache_cfg.get("name", f"cache{i}")
            if any(name == seen for seen, _ in self.caches):
                raise ValueError(f"Duplicate cache name: {name}")
            self.caches.append((name, CacheConfig.from_dict(cache_cfg)))
        self.trace = load_trace(cfg["trace"])
        self.num_threads = max(1, cfg.get("benchmark", {}).get("num_threads", 4))
        self.results_lock = threading.Lock()
        self.results = {}
        self.costs = {}

    def _worker(self, positions):
        # every simulator is private to this thread; only the merge is shared
        local_results = {}
        local_costs = {}
        for pos in positions:
            name, config = self.caches[pos]
            sim = CacheSimulator(config)
            costs = []
            stats = sim.run(self.trace, costs)
            local_results[pos] = summarize(name, config, stats, costs)
            local_costs[pos] = costs

        with self.results_lock:
            self.results.update(local_results)
            self.costs.update(local_costs)

    def run(self):
        threads = []
        n = min(self.num_threads, len(self.caches)) or 1
        start = time.time()
        for t_id in range(n):
            positions = list(range(t_id, len(self.caches), n))
            t = threading.Thread(target=self._worker, args=(positions,))
            t.start()
            threads.append(t)
        for t in threads:
            t.join()
        end = time.time()

        ordered = [self.results[pos] for pos in range(len(self.caches))]
        costs = {self.caches[pos][0]: self.costs[pos] for pos in range(len(self.caches))}
        print(f"Simulated {len(self.trace)} accesses against {len(self.caches)} "
              f"cache configs in {end - start:.2f}s")
        return ordered, costs

    def save_results(self, results, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump(results, f, indent=2)
        return path
