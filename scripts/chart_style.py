"""
scripts/chart_style.py
======================
Design system shared by both bee-colony articles: palette, matplotlib
defaults, tick formatters, editorial header/footer and the 1080 × 1080 PNG
export used for every static chart (matplotlib and plotnine alike).

─────────────────────────────────────────────────────────────────────────────
Key R → matplotlib translation notes
─────────────────────────────────────────────────────────────────────────────
  R / ggplot2                       matplotlib equivalent
  ──────────────────────────────    ──────────────────────────────────────────
  theme_set() / theme()             plt.rcParams.update({...})
  scale_y_continuous(labels=...)    ax.yaxis.set_major_formatter(FuncFormatter)
  labs(title=, subtitle=, ...)      fig.text(...) — more layout control
  ggsave(filename, dpi=, width=)    save_square_png(fig, path)
─────────────────────────────────────────────────────────────────────────────
"""

import io
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from PIL import Image

# Non-interactive backend: render straight to files, no display server.
# R equivalent: png(filename) before your plot commands.
matplotlib.use("Agg")

DPI = 150
PX  = 1080

# ─────────────────────────────────────────────────────────────────────────────
# Palette — hive and meadow colours
# ─────────────────────────────────────────────────────────────────────────────
PAL = {
    # Backgrounds — beeswax cream
    "bg":        "#FBF6EC",

    # Data ink
    "honey":     "#E0A100",   # primary series
    "loss":      "#B23A2E",   # colonies lost
    "added":     "#4E8F3A",   # colonies added
    "reno":      "#3C6E91",   # colonies renovated

    # Structural elements
    "grid":      "#E2D9C7",
    "spine":     "#CFC4AE",
    "text":      "#2B2118",
    "subtext":   "#6E6252",
}

# One colour per stressor.  Keys are the labels used in stressor.csv.
STRESSOR_COLORS = {
    "Varroa mites":           "#B23A2E",
    "Other pests/parasites":  "#E07A2E",
    "Disesases":              "#7A4E9C",   # sic — spelled this way in the source data
    "Diseases":               "#7A4E9C",
    "Pesticides":             "#3C6E91",
    "Other":                  "#8C8C7A",
    "Unknown":                "#C9BFA8",
}
FALLBACK_COLOR = "#A89F8C"

# Colony flows (analysis D)
FLOW_COLORS = {
    "colony_lost":  PAL["loss"],
    "colony_added": PAL["added"],
    "colony_reno":  PAL["reno"],
}
FLOW_LABELS = {
    "colony_lost":  "Lost",
    "colony_added": "Added",
    "colony_reno":  "Renovated",
}

SOURCE_NOTE = "Source: USDA NASS Honey Bee Colonies report  ·  via TidyTuesday 2022-01-11"


def apply_style() -> None:
    """Global matplotlib defaults.  R equivalent: theme_set(theme_minimal())."""
    plt.rcParams.update({
        "font.family":        "sans-serif",
        "font.sans-serif":    ["Helvetica Neue", "Helvetica", "Arial",
                               "Liberation Sans", "DejaVu Sans"],
        "figure.facecolor":   PAL["bg"],
        "axes.facecolor":     PAL["bg"],
        "axes.edgecolor":     PAL["spine"],
        "axes.grid":          True,
        "grid.color":         PAL["grid"],
        "grid.linewidth":     0.6,
        "grid.linestyle":     "--",
        "xtick.color":        PAL["subtext"],
        "ytick.color":        PAL["subtext"],
        "text.color":         PAL["text"],
        "axes.spines.top":    False,
        "axes.spines.right":  False,
    })


def stressor_color(name: str) -> str:
    return STRESSOR_COLORS.get(name, FALLBACK_COLOR)


# ─────────────────────────────────────────────────────────────────────────────
# Tick formatters
# ─────────────────────────────────────────────────────────────────────────────

def thousands_fmt(x: float, _pos) -> str:
    """
    Axis tick formatter: 250000 → "250K", 1500000 → "1.5M".

    R equivalent:
        scale_y_continuous(labels = scales::label_number(scale_cut = cut_short_scale()))
    """
    if x == 0:
        return "0"
    if abs(x) >= 1_000_000:
        m = x / 1_000_000
        return f"{m:.1f}M" if m != int(m) else f"{int(m)}M"
    k = x / 1_000
    return f"{k:.0f}K" if abs(k) >= 1 else f"{x:.0f}"


def percent_fmt(x: float, _pos) -> str:
    return f"{x:.0f}%"


THOUSANDS = mticker.FuncFormatter(thousands_fmt)
PERCENT   = mticker.FuncFormatter(percent_fmt)


# ─────────────────────────────────────────────────────────────────────────────
# Header / footer
# ─────────────────────────────────────────────────────────────────────────────

def add_header(fig: plt.Figure, title: str, subtitle: str) -> None:
    """
    Editorial title block: short colour rule, bold title, grey subtitle.
    Positioned with fig.text() in figure coordinates, independent of the axes.
    """
    fig.add_artist(
        plt.Line2D(
            [0.10, 0.15], [0.975, 0.975],
            transform=fig.transFigure,
            color=PAL["honey"],
            linewidth=4,
            solid_capstyle="butt",
        )
    )
    fig.text(
        0.10, 0.955, title,
        fontsize=15, fontweight="bold", color=PAL["text"],
        ha="left", va="top", linespacing=1.1,
        transform=fig.transFigure,
    )
    fig.text(
        0.10, 0.905, subtitle,
        fontsize=9.5, color=PAL["subtext"],
        ha="left", va="top", linespacing=1.45,
        transform=fig.transFigure,
    )


def add_footer(fig: plt.Figure, note: str = SOURCE_NOTE) -> None:
    fig.text(
        0.10, 0.03, note,
        fontsize=7.5, color=PAL["subtext"],
        ha="left", va="bottom",
        transform=fig.transFigure,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────────────────────

def new_figure() -> plt.Figure:
    return plt.figure(figsize=(PX / DPI, PX / DPI), dpi=DPI, facecolor=PAL["bg"])


def save_square_png(fig: plt.Figure, path: Path) -> Path:
    """
    Save a figure as an exactly 1080 × 1080 PNG.

    bbox_inches="tight" fits all text but makes the final size unpredictable,
    so the render is padded to a square with the background colour and then
    resized with Lanczos resampling.

    R equivalent: ggsave(file, plot, width=7.2, height=7.2, dpi=150)
      then magick::image_resize(img, "1080x1080!").
    """
    buf = io.BytesIO()
    fig.savefig(
        buf,
        format="png",
        dpi=DPI,
        bbox_inches="tight",
        facecolor=PAL["bg"],
        edgecolor="none",
    )
    plt.close(fig)   # R equivalent: dev.off()
    buf.seek(0)

    rendered = Image.open(buf)
    w, h     = rendered.size
    side     = max(w, h)

    bg_rgb = tuple(int(PAL["bg"][i:i + 2], 16) for i in (1, 3, 5))
    square = Image.new("RGB", (side, side), bg_rgb)
    square.paste(rendered.convert("RGB"), ((side - w) // 2, (side - h) // 2))

    final = square.resize((PX, PX), Image.LANCZOS)
    path.parent.mkdir(parents=True, exist_ok=True)
    final.save(path, dpi=(DPI, DPI))

    print(f"[done]  Chart saved → {path}")
    print(f"        {path.stat().st_size / 1024:.0f} KB  |  {DPI} DPI  |  {final.size[0]} × {final.size[1]} px")
    return path
