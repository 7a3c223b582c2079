# main.py
import argparse
import json
import os
import sys

from cache import CacheConfig, InvalidConfigError
from simulator import CacheSimulator
from tracefile import read_trace

REPORT_FIELDS = [
    ("Total loads", "total_loads"),
    ("Total stores", "total_stores"),
    ("Load hits", "load_hits"),
    ("Load misses", "load_misses"),
    ("Store hits", "store_hits"),
    ("Store misses", "store_misses"),
    ("Total cycles", "total_cycles"),
]


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits with status 2; bad arguments here exit with 1
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def build_parser():
    parser = _ArgumentParser(
        prog="csim",
        description="Set-associative cache simulator. Reads a load/store trace "
                    "from a file or stdin and reports hits, misses and cycles.")
    parser.add_argument("sets", help="number of sets (power of 2)")
    parser.add_argument("blocks", help="blocks per set (power of 2)")
    parser.add_argument("bytes", help="bytes per block (power of 2, at least 4)")
    parser.add_argument("allocate", help="write-allocate or no-write-allocate")
    parser.add_argument("write", help="write-through or write-back")
    parser.add_argument("eviction", help="lru or fifo")
    parser.add_argument("trace", nargs="?", help="trace file (default: stdin)")
    parser.add_argument("--json", action="store_true", help="print statistics as JSON")
    return parser


def config_from_args(args):
    try:
        sets, blocks, size = int(args.sets), int(args.blocks), int(args.bytes)
    except ValueError:
        raise InvalidConfigError("Non-integer numeric parameter in parameters 1-3")
    return CacheConfig.from_policy_names(sets, blocks, size, args.allocate, args.write, args.eviction)


def format_report(stats):
    return "\n".join(f"{label}: {getattr(stats, attr)}" for label, attr in REPORT_FIELDS)


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except InvalidConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sim = CacheSimulator(config)
    if args.trace:
        try:
            # undecodable bytes become U+FFFD and the line is skipped as malformed
            with open(args.trace, "r", errors="replace") as f:
                stats = sim.run(read_trace(f))
        except OSError as e:
            print(f"Error: cannot read trace {args.trace}: {e.strerror}", file=sys.stderr)
            return 1
    else:
        if hasattr(sys.stdin, "reconfigure"):
            sys.stdin.reconfigure(errors="replace")
        stats = sim.run(read_trace(sys.stdin))

    if args.json:
        print(json.dumps(stats.as_dict(), indent=2))
    else:
        print(format_report(stats))
    return 0


def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)


def benchmark_main(argv=None):
    from benchmark import BenchmarkRunner
    from visualize import plot_cycles_by_config, plot_hit_miss_rate, plot_cycle_distribution

    argv = sys.argv[1:] if argv is None else argv
    cfg = load_config(argv[0] if argv else "config.json")
    try:
        runner = BenchmarkRunner(cfg)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print("Starting benchmark with trace config:", cfg["trace"])
    results, costs = runner.run()
    out_cfg = cfg.get("output", {})
    results_path = runner.save_results(results, out_cfg)
    for r in results:
        print(f"  {r['name']:20s} {r['config']:40s} hit rate {r['hit_rate']:.2%}, "
              f"{r['total_cycles']} cycles")
    print("Results saved to:", results_path)

    results_dir = out_cfg.get("results_dir", "results")
    plot_cycles_by_config(results, out_cfg.get("cycles_plot", os.path.join(results_dir, "cycles_by_config.png")))
    plot_cycle_distribution(costs, out_cfg.get("distribution_plot", os.path.join(results_dir, "cycle_distribution.png")))
    for r in results:
        plot_hit_miss_rate(r["hit_rate"], os.path.join(results_dir, f"hit_miss_{r['name']}.png"),
                           title=f"{r['name']} Hit/Miss Rate")
    print(f"Plots saved in {results_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
