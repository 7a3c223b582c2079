# visualize.py
import os
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_cycles_by_config(results, outpath):
    _ensure_dir(outpath)
    names = [r["name"] for r in results]
    cycles = [r["total_cycles"] for r in results]
    plt.figure(figsize=(max(6, len(names) * 1.2), 4))
    plt.bar(names, cycles)
    plt.title("Total Cycles per Cache Configuration")
    plt.ylabel("Cycles")
    plt.xticks(rotation=30, ha="right")
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_hit_miss_rate(hit_rate, outpath, title="Cache Hit/Miss Rate"):
    _ensure_dir(outpath)
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title(title)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_cycle_distribution(costs_by_name, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(8,4))
    for name, costs in costs_by_name.items():
        plt.plot(sorted(costs), marker='.', linewidth=0.5, label=name)
    plt.title("Per-Access Cycle Distribution")
    plt.xlabel("Sorted Access Index")
    plt.ylabel("Cycles")
    plt.yscale("log")
    plt.grid(True)
    if costs_by_name:
        plt.legend()
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
