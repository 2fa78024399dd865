import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from hullsearch.base_table import PROB_FACTOR

"""

Diagramme eines Laufs: Verteilung der Exponenten der Charakteristiken einer
Hull und Grösse des Masters während des Pruning.

"""


def plot_bins(section, path):
    """Histogramm der Anzahl Charakteristiken pro Exponent (ohne übersprungene Pfade)."""
    keys = sorted(k for k in section.bins if k != 0)
    x = np.array([k / PROB_FACTOR for k in keys])
    y = np.array([section.bins[k] for k in keys])

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.set_xlabel('Exponent (-log2)')
    ax.set_ylabel('Anzahl Charakteristiken')
    if len(x):
        ax.bar(x, y, width=0.2, color='purple', alpha=0.6, label=f'Hull ({section.mode.value})')
        ax.set_yscale('log')
        ax.legend(loc='upper right')
    ax.grid(True)
    plt.title('Charakteristiken in Abhängigkeit des Exponenten')
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close(fig)


def plot_prune_history(records, path):
    """Grösse des Masters nach jedem Schleifendurchlauf aller PruneRecords."""
    sizes = []
    for rec in records:
        sizes.append(rec.start_complexity)
        sizes.extend(loop.end_complexity for loop in rec.loops)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.set_xlabel('Schleifendurchlauf')
    ax.set_ylabel('Anzahl Knoten im Master')
    if sizes:
        x = np.arange(len(sizes))
        ax.plot(x, sizes, color='blue', marker='o', markersize=3, label='Grösse')
        ax.axhline(records[0].target_complexity, color='red', linestyle='--', label='Weiche Grenze')
        ax.legend(loc='upper right')
    ax.grid(True)
    plt.title('Grösse des Masters während des Pruning')
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close(fig)


def plot_limit_sweep(limits, probabilities, times, path):
    """
    Hull-Exponent und Laufzeit in Abhängigkeit der weichen Grenze, mit einer
    linearen Trendlinie der Laufzeit über log2(Grenze).
    """
    fig, ax1 = plt.subplots(figsize=(10, 6))
    x = np.log2(np.array(limits, dtype=float))
    ax1.set_xlabel('log2(weiche Grenze)')
    ax1.set_ylabel('Hull-Exponent')
    ax1.scatter(x, probabilities, color='purple', label='Hull-Exponent', alpha=0.6)
    ax1.grid(True)

    ax2 = ax1.twinx()
    ax2.set_ylabel('Laufzeit (s)')
    ax2.scatter(x, times, color='red', label='Laufzeit', alpha=0.3)
    if len(x) > 1:
        coeffs = np.polyfit(x, times, 1)
        trend = np.poly1d(coeffs)
        ax2.plot(x, trend(x), color='darkred', linestyle='--', label='Trend (Laufzeit)')
    ax1.legend(loc='upper left')
    ax2.legend(loc='upper right')
    plt.title('Hull-Exponent und Laufzeit in Abhängigkeit der weichen Grenze')
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close(fig)
