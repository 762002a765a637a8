import logging

import pandas as pd
from .specs import DATASET_SPECS

logger = logging.getLogger(__name__)


def validate_df(df: pd.DataFrame, dataset_name: str) -> None:
    if dataset_name not in DATASET_SPECS:
        raise ValueError(f"Unknown dataset: {dataset_name}")

    required_cols = set(DATASET_SPECS[dataset_name])
    missing = required_cols - set(df.columns)

    if missing:
        raise ValueError(
            f"{dataset_name} missing columns: {sorted(missing)}"
        )

    if df.empty:
        raise ValueError(f"{dataset_name} is empty")

    # soft checks
    id_col = DATASET_SPECS[dataset_name][0]
    blank_ids = int(df[id_col].isna().sum())
    if blank_ids:
        logger.warning("%s: %d rows without %s", dataset_name, blank_ids, id_col)
