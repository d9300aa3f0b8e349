"""
Parse Ads Manager CSV exports into PerformanceRecord rows.

Header names map 1:1 onto record fields through CSV_COLUMN_MAPPING. Numeric
cells are cleaned of separators, currency symbols and percent signs; anything
that still fails to parse becomes 0 and is counted in the report. Rows missing
a campaign name, ad name or campaign ID are dropped and listed in the report.
"""
import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from adperf.errors import MalformedInputError, RowRejected
from adperf.schemas.performance import NUMERIC_FIELDS, PerformanceRecord

logger = logging.getLogger(__name__)


CSV_COLUMN_MAPPING: Dict[str, str] = {
    "Campaign name": "campaign_name",
    "Ad set name": "ad_set_name",
    "Campaign ID": "campaign_id",
    "Placement": "placement",
    "Ad name": "ad_name",
    "Ad set ID": "ad_set_id",
    "Ad ID": "ad_id",
    "Platform": "platform",
    "Delivery status": "delivery_status",
    "Delivery level": "delivery_level",
    "Reach": "reach",
    "Impressions": "impressions",
    "Frequency": "frequency",
    "Attribution setting": "attribution_setting",
    "Result Type": "result_type",
    "Results": "results",
    "Amount spent (USD)": "amount_spent",
    "Cost per result": "cost_per_result",
    "Starts": "starts",
    "Ends": "ends",
    "Purchase ROAS (return on ad spend)": "purchase_roas",
    "CTR (all)": "ctr_all",
    "Result rate": "result_rate",
    "Reporting starts": "reporting_starts",
    "Reporting ends": "reporting_ends",
    "Day": "day",
}

REQUIRED_FIELDS: Tuple[str, ...] = ("campaign_name", "ad_name", "campaign_id")

_NUMERIC_FIELD_SET = frozenset(NUMERIC_FIELDS)
_NUMBER_NOISE = re.compile(r"[,\s$€£¥%]")
_EMPTY_NUMBER_TOKENS = frozenset({"", "-"})


@dataclass
class ParseReport:
    total_rows: int = 0
    accepted_rows: int = 0
    rejected: List[RowRejected] = field(default_factory=list)
    coerced_values: int = 0
    coerced_by_column: Dict[str, int] = field(default_factory=dict)
    unknown_columns: List[str] = field(default_factory=list)

    @property
    def rejected_rows(self) -> int:
        return len(self.rejected)

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)


@dataclass
class ParseResult:
    records: List[PerformanceRecord]
    report: ParseReport


def clean_header(header: Optional[str]) -> str:
    if header is None:
        return ""
    return header.lstrip("\ufeff").strip()


def clean_string(value: Optional[str]) -> str:
    """Trim whitespace and unwrap one layer of surrounding double quotes."""
    if value is None:
        return ""
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned[0] == '"' and cleaned[-1] == '"':
        cleaned = cleaned[1:-1]
    return cleaned


def parse_number(value: Optional[str]) -> Tuple[float, bool]:
    """
    Parse a numeric cell.

    Returns (number, coerced) where coerced is True when a non-empty value
    could not be read as a finite number and was replaced by 0.
    """
    if value is None:
        return 0.0, False
    cleaned = _NUMBER_NOISE.sub("", value)
    if cleaned in _EMPTY_NUMBER_TOKENS:
        return 0.0, False
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0, True
    if not math.isfinite(number):
        return 0.0, True
    return number, False


def _decode(raw: Union[str, bytes]) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"Upload is not valid UTF-8 text: {e}", cause=e) from e


def parse_performance_csv(raw: Union[str, bytes], delimiter: str = ",") -> ParseResult:
    """
    Parse a delimited export into records plus a report of dropped and coerced values.

    Raises:
        MalformedInputError: the input cannot be read as delimited text at all.
    """
    text = _decode(raw)
    report = ParseReport()
    records: List[PerformanceRecord] = []

    try:
        reader = csv.DictReader(io.StringIO(text), delimiter=delimiter, strict=True)
        headers = reader.fieldnames
        if not headers:
            return ParseResult(records=records, report=report)

        cleaned_headers = [clean_header(h) for h in headers]
        reader.fieldnames = cleaned_headers
        report.unknown_columns = [
            h for h in cleaned_headers if h and h not in CSV_COLUMN_MAPPING
        ]
        columns = [(h, CSV_COLUMN_MAPPING[h]) for h in cleaned_headers if h in CSV_COLUMN_MAPPING]

        for row in reader:
            if not any(isinstance(v, str) and v.strip() for v in row.values()):
                continue
            report.total_rows += 1

            values: Dict[str, object] = {}
            for header, field_name in columns:
                cell = row.get(header)
                if field_name in _NUMERIC_FIELD_SET:
                    number, coerced = parse_number(cell)
                    if coerced:
                        report.coerced_values += 1
                        report.coerced_by_column[header] = report.coerced_by_column.get(header, 0) + 1
                    values[field_name] = number
                else:
                    values[field_name] = clean_string(cell)

            missing = [name for name in REQUIRED_FIELDS if not values.get(name)]
            if missing:
                report.rejected.append(RowRejected(line_number=reader.line_num, missing_fields=missing))
                continue

            records.append(PerformanceRecord(**values))
    except csv.Error as e:
        raise MalformedInputError(f"Invalid CSV format: {e}", cause=e) from e

    report.accepted_rows = len(records)
    logger.info(
        "Parsed %s rows: %s accepted, %s rejected, %s coerced values",
        report.total_rows,
        report.accepted_rows,
        report.rejected_rows,
        report.coerced_values,
    )
    return ParseResult(records=records, report=report)
