"""
reporting.py - Summary tables, charts and a Markdown report

Turns a list of :class:`BenchmarkResult` into

    summary.csv            one row per configuration
    speedup_bar.png        managed / native mean-time ratio per configuration
    timing_comparison.png  native vs managed mean time (log scale)
    report.md              Markdown table referencing the two charts

Failed configurations appear in the table (status ``failed``) but are left
out of the charts.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for server / CI environments
import matplotlib.pyplot as plt

from nativebench.core.models import BenchmarkResult

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "algorithm", "size", "status", "iterations",
    "native_mean_ms", "managed_mean_ms", "speedup", "validated",
]


def build_summary_frame(results: Sequence[BenchmarkResult]) -> pd.DataFrame:
    """One row per result, in the given order."""
    rows: List[Dict[str, Any]] = []
    for r in results:
        rows.append({
            "algorithm": r.algorithm,
            "size": r.size,
            "status": r.status.value,
            "iterations": r.iterations,
            "native_mean_ms": np.nan if r.failed else r.native_stats.mean,
            "managed_mean_ms": np.nan if r.failed else r.managed_stats.mean,
            "speedup": np.nan if r.failed else r.speedup,
            "validated": bool(r.validation.success),
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def _completed(frame: pd.DataFrame) -> pd.DataFrame:
    done = frame[frame["status"] == "completed"]
    return done.assign(config=done["algorithm"] + " (" + done["size"] + ")")


def plot_speedups(frame: pd.DataFrame, path: str) -> Optional[str]:
    """Bar chart of speedups; returns the path or None if nothing to plot."""
    data = _completed(frame).dropna(subset=["speedup"])
    if data.empty:
        return None

    fig, ax = plt.subplots(figsize=(10, 5))
    colors = ["steelblue" if s >= 1.0 else "salmon" for s in data["speedup"]]
    ax.bar(data["config"], data["speedup"], color=colors, edgecolor="black")
    ax.set_ylabel("Speedup (managed / native)")
    ax.set_title("Native Speedup by Configuration")
    ax.axhline(1.0, color="red", linestyle="--", linewidth=0.8, label="parity")
    ax.legend()
    plt.setp(ax.get_xticklabels(), rotation=30, ha="right")
    plt.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def plot_timings(frame: pd.DataFrame, path: str) -> Optional[str]:
    """Grouped bar chart of native vs managed mean time."""
    data = _completed(frame)
    if data.empty:
        return None

    fig, ax = plt.subplots(figsize=(10, 5))
    x = np.arange(len(data))
    width = 0.35
    ax.bar(x - width / 2, data["native_mean_ms"], width, label="Native", color="mediumseagreen")
    ax.bar(x + width / 2, data["managed_mean_ms"], width, label="Managed", color="salmon")
    ax.set_xticks(x)
    ax.set_xticklabels(data["config"], rotation=30, ha="right")
    ax.set_yscale("log")
    ax.set_ylabel("Mean time (ms, log scale)")
    ax.set_title("Native vs Managed Mean Execution Time")
    ax.legend()
    plt.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def _fmt(value: float, spec: str) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "-"
    return format(value, spec)


def generate_report(frame: pd.DataFrame, output_dir: str) -> str:
    """
    Write ``summary.csv``, the charts and ``report.md`` into *output_dir*.

    Returns
    -------
    str
        The Markdown text.
    """
    os.makedirs(output_dir, exist_ok=True)
    frame.to_csv(os.path.join(output_dir, "summary.csv"), index=False)
    speedup_png = plot_speedups(frame, os.path.join(output_dir, "speedup_bar.png"))
    timing_png = plot_timings(frame, os.path.join(output_dir, "timing_comparison.png"))

    lines = [
        "# Native vs Managed Benchmark Report",
        "",
        "## Summary",
        "",
        "| Algorithm | Size | Status | Trials | Native Mean (ms) | Managed Mean (ms) | Speedup | Validated |",
        "|-----------|------|--------|-------:|-----------------:|------------------:|--------:|:---------:|",
    ]
    for _, row in frame.iterrows():
        lines.append(
            f"| {row['algorithm']} | {row['size']} | {row['status']} | {row['iterations']} | "
            f"{_fmt(row['native_mean_ms'], '.3f')} | {_fmt(row['managed_mean_ms'], '.3f')} | "
            f"{_fmt(row['speedup'], '.2f')}{'x' if not pd.isna(row['speedup']) else ''} | "
            f"{'yes' if row['validated'] else 'no'} |"
        )

    completed = frame[frame["status"] == "completed"]
    if not completed.empty and completed["speedup"].notna().any():
        best = completed.loc[completed["speedup"].idxmax()]
        lines += [
            "",
            f"Largest speedup: **{best['algorithm']} ({best['size']})** at {best['speedup']:.1f}x.",
        ]

    if speedup_png:
        lines += ["", "## Speedup Chart", "", "![Speedup](speedup_bar.png)"]
    if timing_png:
        lines += ["", "## Timing Comparison", "", "![Timing](timing_comparison.png)"]
    lines += ["", "---", "*Report generated by nativebench*", ""]

    report = "\n".join(lines)
    report_path = os.path.join(output_dir, "report.md")
    with open(report_path, "w", encoding="utf-8") as fh:
        fh.write(report)
    logger.info("Report written to %s", report_path)
    return report
