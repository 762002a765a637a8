from typing import Iterable, List, Sequence

import pandas as pd

DOSE_COLUMNS = ["doses_administered", "doses_with_wastage"]


def fold_contributions(
    rows: Iterable[dict],
    keys: Sequence[str],
    first_cols: Sequence[str] = (),
) -> pd.DataFrame:
    """
    Sum dose contributions per composite key.

    Only keys touched by at least one contribution appear in the result,
    nothing is zero-filled. `first_cols` keep the value of the first
    contribution of each group (display-only detail such as rates).
    """
    columns: List[str] = list(keys) + DOSE_COLUMNS + list(first_cols)
    df = pd.DataFrame(list(rows), columns=columns)
    if df.empty:
        return df

    agg = {c: (c, "sum") for c in DOSE_COLUMNS}
    agg.update({c: (c, "first") for c in first_cols})

    return (
        df.groupby(list(keys), sort=True)
        .agg(**agg)
        .reset_index()
    )
