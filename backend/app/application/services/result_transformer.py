"""Result transformer: raw store rows to API-shaped records."""

import json
import logging
from typing import Any

from pydantic.alias_generators import to_camel

from app.domain.entities import RELATIONS

logger = logging.getLogger(__name__)

JSON_DOCUMENT_FIELDS: tuple[str, ...] = ("affected_services", "additional_contacts")


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


class ResultTransformer:
    """Normalizes one raw record dict into the API representation."""

    def transform(self, raw: dict[str, Any]) -> dict[str, Any]:
        record = dict(raw)
        counts: dict[str, int] = record.pop("_count", None) or {}

        for name in JSON_DOCUMENT_FIELDS:
            if name in record:
                record[name] = self._decode_document(record.get("id"), name, record[name])

        for relation in RELATIONS:
            if isinstance(record.get(relation), list):
                continue
            if relation in counts:
                record[relation] = int(counts[relation] or 0)

        # Decoded documents keep the keys they were stored with
        out = {
            to_camel(k): v if k in JSON_DOCUMENT_FIELDS else _camelize(v)
            for k, v in record.items()
        }
        if "lat" in record:
            out["latitude"] = record["lat"]
        if "lng" in record:
            out["longitude"] = record["lng"]
        return out

    @staticmethod
    def _decode_document(record_id: Any, name: str, value: Any) -> Any:
        """Decode stored JSON text; ``None`` for absent or undecodable values."""
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Record %s has undecodable %s; returning null", record_id, name)
            return None
