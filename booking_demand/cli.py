# file: booking_demand/cli.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .tasks import regenerate_forecast, run_full_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _config(**options):
    """Only options given on the command line override env/defaults."""
    return load_config(**{k: v for k, v in options.items() if v is not None})


@app.command()
def run(
    data_path: Optional[str] = None,
    artifacts_dir: Optional[str] = None,
    horizon: Optional[int] = None,
    n_jobs: Optional[int] = None,
    fit_timeout: Optional[float] = typer.Option(None, help="Seconds per job; 0 disables"),
    include_canceled: bool = False,
    overwrite: bool = False,
):
    cfg = _config(
        data_path=data_path,
        artifacts_dir=artifacts_dir,
        horizon=horizon,
        n_jobs=n_jobs,
        exclude_canceled=not include_canceled,
        overwrite=overwrite,
    )
    if fit_timeout is not None:
        cfg = replace(cfg, fit_timeout=fit_timeout or None)

    results = run_full_pipeline(cfg)

    table = Table(title="Booking Demand Grid Search")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in results.items():
        table.add_row(str(k), str(v))

    console.print(table)


@app.command()
def forecast(
    unique_id: str,
    horizon: Optional[int] = None,
    forward: bool = False,
    artifacts_dir: Optional[str] = None,
):
    """Regenerate the winning forecast for one series, e.g. 'City Hotel|Online TA'."""
    cfg = _config(artifacts_dir=artifacts_dir)
    df = regenerate_forecast(cfg, unique_id, horizon=horizon, forward=forward)

    table = Table(title=f"{unique_id}: {df['seasonal'].iloc[0]} + {df['model'].iloc[0]}")
    for col in [c for c in ("ds", "y", "yhat") if c in df.columns]:
        table.add_column(col, style="cyan" if col == "ds" else "green")

    for _, row in df.iterrows():
        cells = [str(row["ds"].date())]
        if "y" in df.columns:
            cells.append(f"{row['y']:.0f}")
        cells.append(f"{row['yhat']:.2f}")
        table.add_row(*cells)

    console.print(table)


if __name__ == "__main__":
    app()
