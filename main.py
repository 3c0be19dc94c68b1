from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from mipool.pooling import PoolingConfig, RubinPooler, analyses_from_long_frame

app = typer.Typer()


@app.callback()
def main() -> None:
    """
    Pool analyses of multiply imputed datasets with Rubin's rules.
    """


@app.command("pool")
def pool(
    input_path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Long-format CSV with one row per imputation and term.",
    ),
    method: str = typer.Option(
        "smallsample",
        "--method",
        help="Degrees of freedom: 'smallsample' (Barnard-Rubin) or 'rubin' (classical).",
        show_default=True,
    ),
    dfcom: Optional[float] = typer.Option(
        None,
        "--dfcom",
        help="Complete-data residual degrees of freedom (defaults to the first analysis, then 99999).",
    ),
    imputation_col: str = typer.Option(
        "imputation",
        "--imputation-col",
        help="Column identifying which imputation a row belongs to.",
        show_default=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        dir_okay=False,
        writable=True,
        help="Write the pooled table to this CSV instead of printing it.",
    ),
) -> None:
    """
    Read per-imputation coefficient tables from a CSV and pool them term by term.
    """
    try:
        frame = pd.read_csv(input_path)
        analyses = analyses_from_long_frame(frame, imputation_col=imputation_col)
        pooled = RubinPooler(PoolingConfig(method=method, dfcom=dfcom)).pool_frame(analyses)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        pooled.to_csv(output, index=False)
        print(f"[pool] Wrote {len(pooled)} terms from {len(analyses)} analyses to {output}")
    else:
        print(pooled.to_string(index=False))


if __name__ == "__main__":
    app()
