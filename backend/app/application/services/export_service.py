"""Export encoders for search results (CSV and JSON)."""

import csv
import io
import json
from datetime import date, datetime
from typing import Any

from app.domain.entities import ExportDocument
from app.domain.exceptions import ExportFormatNotImplementedError, SearchValidationError

SUPPORTED_FORMATS: tuple[str, ...] = ("csv", "json", "xlsx")
IMPLEMENTED_FORMATS: frozenset[str] = frozenset({"csv", "json"})


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def check_export_format(export_format: str) -> None:
    """Reject unknown formats (400) and declared-but-unbuilt ones (501)."""
    if export_format not in SUPPORTED_FORMATS:
        raise SearchValidationError(
            f"Format must be one of: {', '.join(SUPPORTED_FORMATS)}",
            code="INVALID_FORMAT",
        )
    if export_format not in IMPLEMENTED_FORMATS:
        raise ExportFormatNotImplementedError(export_format)


class ExportEncoder:
    """Encodes transformed records into a downloadable document."""

    def encode(
        self,
        records: list[dict[str, Any]],
        export_format: str,
        *,
        timestamp_ms: int,
    ) -> ExportDocument:
        check_export_format(export_format)
        if export_format == "json":
            content = json.dumps(records, indent=2, default=_json_default)
            media_type = "application/json"
        else:
            content = self._to_csv(records)
            media_type = "text/csv"
        return ExportDocument(
            content=content,
            media_type=media_type,
            filename=f"service-requests-{timestamp_ms}.{export_format}",
            record_count=len(records),
        )

    @staticmethod
    def _to_csv(records: list[dict[str, Any]]) -> str:
        # union of keys in first-seen order so sparse rows still line up
        columns: list[str] = []
        for record in records:
            for key in record:
                if key not in columns:
                    columns.append(key)

        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(columns)
        for record in records:
            writer.writerow([_csv_cell(record.get(column)) for column in columns])
        return buf.getvalue()


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=_json_default)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
