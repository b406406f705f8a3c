"""Plot histograms of step-tree sizes per solver configuration."""

import json
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np


DATA_DIR = Path(__file__).parent / "output"
OUTPUT_DIR = Path(__file__).parent / "tree_size_plots"

# Stats files written by generate.py, one per solver configuration
STATS_FILES = [
    "up_es_stats.json",
    "up_stats.json",
    "es_stats.json",
    "plain_stats.json",
    "count_stats.json",
]


def load_node_counts(filepath: Path) -> tuple[list[int], str]:
    """Return the per-formula step counts and a label for the configuration."""
    with open(filepath, "r") as f:
        stats = json.load(f)
    options = stats.get("options", {})
    label = (
        f"{stats.get('mode', 'decision')}, "
        f"UP={'on' if options.get('unit_propagation') else 'off'}, "
        f"ES={'on' if options.get('early_stopping') else 'off'}"
    )
    return stats.get("node_counts", []), label


def plot_histogram(counts: list[int], label: str, output_path: Path):
    """Create and save a histogram of tree sizes."""
    counts_arr = np.array(counts)

    fig, ax = plt.subplots(figsize=(10, 6))

    ax.hist(counts_arr, bins=60, edgecolor="black", linewidth=0.5, alpha=0.8)
    ax.set_xlabel("Steps per tree", fontsize=12)
    ax.set_ylabel("Count", fontsize=12)
    ax.set_title(f"Step Tree Size Distribution — {label}", fontsize=14)

    # Add stats text box
    stats_text = (
        f"N = {len(counts_arr):,}\n"
        f"Mean = {counts_arr.mean():.1f}\n"
        f"Median = {np.median(counts_arr):.0f}\n"
        f"Min = {counts_arr.min():,}\n"
        f"Max = {counts_arr.max():,}"
    )
    ax.text(
        0.97, 0.95, stats_text,
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment="top",
        horizontalalignment="right",
        bbox=dict(boxstyle="round,pad=0.4", facecolor="wheat", alpha=0.8),
    )

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    print(f"  Saved: {output_path}")


def plot_comparison(series: dict[str, list[int]], output_path: Path):
    """Box plot of tree sizes for all configurations side by side."""
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.boxplot(list(series.values()), showfliers=False)
    ax.set_xticks(range(1, len(series) + 1), list(series.keys()), rotation=15, fontsize=9)
    ax.set_ylabel("Steps per tree", fontsize=12)
    ax.set_title("Step Tree Size by Configuration", fontsize=14)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    print(f"  Saved: {output_path}")


def main():
    OUTPUT_DIR.mkdir(exist_ok=True)

    series = {}
    for filename in STATS_FILES:
        filepath = DATA_DIR / filename
        if not filepath.exists():
            print(f"Skipping {filename} (not found)")
            continue

        print(f"Processing {filename}...")
        counts, label = load_node_counts(filepath)
        if not counts:
            print(f"  No trees found, skipping.")
            continue

        series[label] = counts
        out_path = OUTPUT_DIR / f"{filepath.stem}_tree_sizes.png"
        plot_histogram(counts, label, out_path)

    if len(series) > 1:
        plot_comparison(series, OUTPUT_DIR / "tree_sizes_comparison.png")

    print("\nDone!")


if __name__ == "__main__":
    main()
