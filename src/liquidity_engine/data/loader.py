"""Ingestion of FR 2052a line items and raw submission rows from tabular sources."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

import numpy as np
import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from ..core.config import LiquidityConfig
from ..core.line_item import LineItem
from ..validation.models import DataRow

logger = logging.getLogger(__name__)


# Column names used by upstream FR 2052a extracts
LINE_ITEM_COLUMN_ALIASES: Dict[str, str] = {
    "productId": "product_id",
    "productName": "product_name",
    "productCategory": "category",
    "product_category": "category",
    "subProduct": "sub_product",
    "maturityBucket": "maturity_bucket",
    "counterpartyType": "counterparty_type",
    "assetClass": "asset_class",
    "outstandingBalance": "outstanding_balance",
    "projectedCashInflow": "projected_cash_inflow",
    "projectedCashOutflow": "projected_cash_outflow",
    "encumberedAmount": "encumbered_amount",
    "isHQLA": "is_hqla",
    "hqlaLevel": "hqla_level",
    "runoffRate": "runoff_rate",
    "requiredStableFundingFactor": "required_stable_funding_factor",
    "availableStableFundingFactor": "available_stable_funding_factor",
    "internalRating": "internal_rating",
    "reportDate": "report_date",
}

IDENTIFIER_FIELDS = ("product_id", "id")


class IngestionError(ValueError):
    """Raised when a source record cannot be turned into a model."""

    def __init__(self, index: Any, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Record {index}: {reason}")


def _normalize_record(record: Mapping[str, Any], aliases: Mapping[str, str]) -> Dict[str, Any]:
    normalized = {}
    for key, value in record.items():
        name = aliases.get(key, key)
        if name in IDENTIFIER_FIELDS and value is not None and not isinstance(value, str):
            value = str(value)
        normalized[name] = value
    return normalized


def _frame_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as plain dicts with missing values as None."""
    cleaned = frame.astype(object).where(pd.notna(frame), None)
    return cleaned.to_dict(orient="records")


def line_items_from_records(records: Iterable[Mapping[str, Any]]) -> List[LineItem]:
    """Build line items from mappings keyed by snake_case or camelCase names."""

    items = []
    for index, record in enumerate(records):
        try:
            items.append(LineItem(**_normalize_record(record, LINE_ITEM_COLUMN_ALIASES)))
        except PydanticValidationError as e:
            raise IngestionError(index, str(e)) from e

    logger.info(f"Loaded {len(items)} line items")
    return items


def line_items_from_frame(frame: pd.DataFrame) -> List[LineItem]:
    """Build line items from a DataFrame, one row per item."""

    numeric = frame.select_dtypes(include=[np.number])
    if np.isinf(numeric.to_numpy(dtype=float)).any():
        raise IngestionError("frame", "infinite values in numeric columns")

    return line_items_from_records(_frame_records(frame))


def read_line_items_csv(path: Union[str, Path], **read_csv_kwargs) -> List[LineItem]:
    """Read line items from a CSV extract."""
    frame = pd.read_csv(path, **read_csv_kwargs)
    logger.debug(f"Read {len(frame)} rows from {path}")
    return line_items_from_frame(frame)


def data_rows_from_frame(frame: pd.DataFrame, config: Optional[LiquidityConfig] = None) -> List[DataRow]:
    """Build raw submission rows for validation.

    Columns may use data row attribute names or the registry field names
    (``Currency``, ``LendableValue``, ...) configured as field aliases.
    """

    config = config or LiquidityConfig()
    aliases = dict(config.validation.field_aliases)

    rows = []
    for index, record in enumerate(_frame_records(frame)):
        try:
            rows.append(DataRow.from_raw(_normalize_record(record, aliases)))
        except PydanticValidationError as e:
            raise IngestionError(index, str(e)) from e

    logger.info(f"Loaded {len(rows)} submission rows")
    return rows
