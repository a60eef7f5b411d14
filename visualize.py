# ============================================================
#  visualize.py
#  Plots, ASCII boards and text reports for both GA phases.
# ============================================================

import os
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

import config
from bitboard import bits_to_grid
from chromosome import FEATURE_NAMES

BOARD = config.BOARD_SIZE
OCEAN = '#0a1628'
SHIP  = '#f0a500'
GRID  = '#1e3a5f'

COLUMNS = "  " + " ".join(chr(65 + i) for i in range(BOARD))


def layout_grid(genome):
    """(10,10) float32 occupancy grid of a placement genome, indexed [y, x]."""
    return bits_to_grid(genome.decode().occupied_bits())


# ── ASCII ────────────────────────────────────────────────────
def layout_ascii(genome, rank=None):
    grid = layout_grid(genome)
    head = f"  Layout #{rank}" if rank is not None else "  Layout"
    head += (f"  fitness={genome.fitness:.2f}"
             f"  R/C/MC={genome.mean_shots_random:.1f}/"
             f"{genome.mean_shots_checkerboard:.1f}/{genome.mean_shots_mc:.1f}")
    lines = [head, COLUMNS, "  " + "─" * (2 * BOARD - 1)]
    for y in range(BOARD):
        row = f"{y+1:>2}│"
        for x in range(BOARD):
            row += "█ " if grid[y, x] else "· "
        lines.append(row.rstrip())
    return "\n".join(lines)


def print_layout_ascii(genome, rank=None):
    print("\n" + layout_ascii(genome, rank))


def write_placement_report(path, top, best_per_generation):
    """Top placements with boards, then the best genome of every generation."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, 'w') as f:
        f.write("PLACEMENT GA REPORT\n")
        f.write(f"Fitness weights: random={config.W_RANDOM:.2f} "
                f"checkerboard={config.W_CHECKER:.2f} montecarlo={config.W_MC:.2f}\n\n")

        f.write(f"── Top {len(top)} placements ──\n")
        for rank, genome in enumerate(top, 1):
            f.write(layout_ascii(genome, rank) + "\n")
            f.write(f"  genes: {genome.serialize()}\n\n")

        f.write("── Best per generation ──\n")
        f.write("generation,fitness,random,checkerboard,montecarlo,genes\n")
        for gen in sorted(best_per_generation):
            g = best_per_generation[gen]
            f.write(f"{gen},{g.fitness:.4f},{g.mean_shots_random:.2f},"
                    f"{g.mean_shots_checkerboard:.2f},{g.mean_shots_mc:.2f},"
                    f"{g.serialize()}\n")
    print(f"[Viz] Report: {path}")


# ── Single layout renderer ───────────────────────────────────
def plot_layout(grid, ax, score=None, rank=None):
    cmap = ListedColormap([OCEAN, SHIP])
    ax.imshow(grid, cmap=cmap, vmin=0, vmax=1, aspect='equal',
              interpolation='nearest')

    for i in range(BOARD + 1):
        ax.axhline(i - 0.5, color=GRID, linewidth=0.5)
        ax.axvline(i - 0.5, color=GRID, linewidth=0.5)

    ax.set_xticks(range(BOARD))
    ax.set_yticks(range(BOARD))
    ax.set_xticklabels([chr(65+i) for i in range(BOARD)], fontsize=6, color='#aabbcc')
    ax.set_yticklabels(range(1, BOARD+1), fontsize=6, color='#aabbcc')
    ax.tick_params(length=0)
    for spine in ax.spines.values():
        spine.set_edgecolor(GRID)

    label = ""
    if rank is not None:
        label += f"#{rank}  "
    if score is not None:
        label += f"{score:.1f}"
    ax.set_title(label, fontsize=8, pad=3, color='#ddeeff')


def _load_archive():
    from state_io import load_placements
    if not os.path.exists(config.PLACEMENTS_FILE):
        print("[Viz] Placement archive not found. Run: python run.py placement")
        return None
    return load_placements(config.PLACEMENTS_FILE)


def show_top_layouts(n=20, save_path=None):
    placements = _load_archive()
    if not placements:
        return
    placements = placements[:n]
    n = len(placements)

    cols = min(5, n)
    rows = (n + cols - 1) // cols
    fig, axes = plt.subplots(rows, cols, figsize=(cols * 2.4, rows * 2.6),
                             facecolor=OCEAN, squeeze=False)
    fig.suptitle(f"Top {n} evolved placements", fontsize=10, color='white', y=1.01)

    for i, ax in enumerate(axes.flatten()):
        ax.set_facecolor(OCEAN)
        if i < n:
            plot_layout(layout_grid(placements[i]), ax, rank=i+1)
        else:
            ax.axis('off')

    plt.tight_layout()
    out = save_path or os.path.join(config.RESULTS_DIR, "top_layouts.png")
    plt.savefig(out, dpi=150, bbox_inches='tight', facecolor=OCEAN)
    print(f"[Viz] Saved: {out}")
    plt.close()


def layout_heatmap(save_path=None):
    """Show which cells the archived placements occupy most often."""
    placements = _load_archive()
    if not placements:
        return

    heatmap = np.mean([layout_grid(p) for p in placements], axis=0)

    fig, ax = plt.subplots(figsize=(6, 5.5), facecolor=OCEAN)
    ax.set_facecolor(OCEAN)
    im = ax.imshow(heatmap, cmap='hot', vmin=0, vmax=1, interpolation='nearest')
    cbar = plt.colorbar(im, ax=ax)
    cbar.set_label('Fraction occupied', color='white')
    cbar.ax.yaxis.set_tick_params(color='white')
    plt.setp(plt.getp(cbar.ax.axes, 'yticklabels'), color='white')

    ax.set_title(f"Cell Occupation Heatmap\n(Top {len(placements):,} placements)",
                 color='white', fontsize=12)
    ax.set_xticks(range(BOARD))
    ax.set_xticklabels([chr(65+i) for i in range(BOARD)], color='white')
    ax.set_yticks(range(BOARD))
    ax.set_yticklabels(range(1, BOARD+1), color='white')

    out = save_path or os.path.join(config.RESULTS_DIR, "heatmap.png")
    plt.savefig(out, dpi=150, bbox_inches='tight', facecolor=OCEAN)
    print(f"[Viz] Saved: {out}")
    plt.close()


# ── Convergence curves ───────────────────────────────────────
def _plot_log(log_path, series, ylabel, title, out):
    if not os.path.exists(log_path):
        print(f"[Viz] Log not found: {log_path}")
        return None

    data = np.atleast_1d(np.genfromtxt(log_path, delimiter=',', names=True))
    if data.size == 0:
        return None

    fig, ax = plt.subplots(figsize=(10, 5), facecolor=OCEAN)
    ax.set_facecolor('#0d1f35')
    for column, color, label, style in series:
        ax.plot(data['generation'], data[column], color=color,
                linewidth=2 if style == '-' else 1.5, linestyle=style, label=label)

    ax.set_xlabel('Generation', color='white')
    ax.set_ylabel(ylabel, color='white')
    ax.set_title(title, color='white', fontsize=13)
    ax.legend(facecolor='#1a2a3a', labelcolor='white', fontsize=9)
    ax.tick_params(colors='white')
    for spine in ax.spines.values():
        spine.set_edgecolor(GRID)

    plt.savefig(out, dpi=150, bbox_inches='tight', facecolor=OCEAN)
    print(f"[Viz] Saved: {out}")
    plt.close()
    return out


def plot_ga_curve(save_dir=None):
    """One convergence plot per GA log that exists. Returns the written paths."""
    save_dir = save_dir or config.LOG_DIR
    written = []

    out = _plot_log(config.PLACEMENT_LOG_FILE,
                    [('best_fitness', SHIP,      'Best placement fitness', '-'),
                     ('mean_fitness', '#5bc8af', 'Mean population fitness', '-'),
                     ('top5_mean',    '#8899ff', 'Top-5 mean fitness', '--')],
                    'Weighted mean shots survived',
                    'Placement GA Convergence',
                    os.path.join(save_dir, "placement_ga_curve.png"))
    if out:
        written.append(out)

    out = _plot_log(config.WEIGHT_LOG_FILE,
                    [('best_fitness', SHIP,      'Best weight fitness', '-'),
                     ('mean_fitness', '#5bc8af', 'Mean population fitness', '-')],
                    '-(mean shots) + bonus * std',
                    'Weight GA Convergence',
                    os.path.join(save_dir, "weight_ga_curve.png"))
    if out:
        written.append(out)
    return written


# ── Summary ──────────────────────────────────────────────────
def print_summary():
    """Print text summary of results."""
    from placement_ga import read_best_placement
    from state_io import load_weights

    if not os.path.exists(config.BEST_PLACEMENT_FILE) and not os.path.exists(config.WEIGHTS_FILE):
        print("[Viz] No results yet. Run: python run.py all")
        return

    print("\n" + "═"*50)
    print("  BATTLESHIP GA — RESULTS")
    print("═"*50)

    if os.path.exists(config.BEST_PLACEMENT_FILE):
        best = read_best_placement(config.BEST_PLACEMENT_FILE)
        print(f"  Best placement genes  : {best.serialize()}")
        print_layout_ascii(best)
    else:
        print("  Placement GA          : no result yet")

    if os.path.exists(config.WEIGHTS_FILE):
        weights = load_weights(config.WEIGHTS_FILE)
        print(f"\n  Evolved shooting weights:")
        for name, w in zip(FEATURE_NAMES, weights):
            print(f"    {name:<20} {w:+.4f}")
    else:
        print("  Weight GA             : no result yet")
    print("═"*50)


if __name__ == "__main__":
    print_summary()
    plot_ga_curve()
    show_top_layouts(n=20)
    layout_heatmap()
    print("\n[Viz] All done!")
