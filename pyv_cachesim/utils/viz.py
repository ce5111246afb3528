import plotly.express as px
import pandas as pd

def export_stats_chart(levels, path: str):
    """Writes a grouped bar chart of the per-level counters as a standalone HTML file."""
    if not levels:
        with open(path, "w") as f:
            f.write("<h1>Cache Statistics</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(levels)
    counters = [c for c in ('hits', 'misses', 'evictions', 'writebacks', 'writethroughs') if c in df.columns]
    for c in counters:
        df[c] = pd.to_numeric(df[c], errors='coerce')
    df = df.dropna(subset=counters)

    long_df = df.melt(id_vars=['name'], value_vars=counters, var_name='counter', value_name='count')

    fig = px.bar(
        long_df,
        x="name",
        y="count",
        color="counter",
        barmode="group",
        text="count",
        title="Cache Simulation Statistics",
        labels={"name": "Cache Level", "count": "Count", "counter": "Counter"}
    )
    fig.update_layout(
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Counter"
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)

def export_stats_ascii(levels, width: int = 60):
    if not levels:
        return "No cache statistics."

    chart = "Cache Simulation Statistics (ASCII Chart)\n"
    chart += "" + ("-" * (width + 30)) + "\n"

    for level in levels:
        accesses = level.get('accesses', 0)
        hits = level.get('hits', 0)
        hit_cols = int(width * hits / accesses) if accesses else 0
        lane = ['H'] * hit_cols + ['.'] * (width - hit_cols)
        chart += f"{level['name']:>8} |" + "".join(lane) + f"| {level.get('hit_rate', 0.0):.2%} hits\n"

    chart += "" + ("-" * (width + 30)) + "\n"
    chart += "H = hit, . = miss\n"

    return chart
