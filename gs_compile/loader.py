"""
Load Guesstimate models from exported JSON.

The Guesstimate API returns a space as:

    {
        "url": "https://www.getguesstimate.com/models/1234",
        "graph": {
            "metrics": [{"id": "m1", "name": "Revenue"}, ...],
            "guesstimates": [
                {"metric": "m1", "guesstimateType": "POINT",
                 "expression": "5", "description": ""},
                ...
            ]
        }
    }
"""

import json
from typing import Any, Optional

from gs_compile.model import (
    Guesstimate,
    GuesstimateKind,
    GuesstimateModel,
    Metric,
)


def parse_model_json(
    model_json: str, url: Optional[str] = None
) -> GuesstimateModel:
    """
    Parse a JSON string holding a Guesstimate export.

    Raises:
        ValueError: If JSON is invalid or the payload is malformed
    """
    try:
        payload = json.loads(model_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid model JSON: {e}")
    return load_model(payload, url=url)


def _parse_metric(index: int, entry: Any) -> Metric:
    if not isinstance(entry, dict):
        raise ValueError(f"Metric #{index} is not an object")
    try:
        return Metric(id=str(entry["id"]), name=str(entry["name"]))
    except KeyError as e:
        raise ValueError(f"Metric #{index} is missing {e.args[0]!r}")


def _parse_kind(index: int, entry: dict[str, Any]) -> GuesstimateKind:
    raw = entry.get("guesstimateType", entry.get("kind"))
    if raw is None:
        raise ValueError(f"Guesstimate #{index} has no guesstimateType")
    try:
        return GuesstimateKind(str(raw).upper())
    except ValueError:
        raise ValueError(
            f"Guesstimate #{index} has unknown guesstimateType {raw!r}"
        )


def _parse_data(index: int, raw: Any) -> Optional[tuple[float, ...]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError(f"Guesstimate #{index} data is not a list")
    for value in raw:
        # bool is an int subclass but never a valid sample
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(
                f"Guesstimate #{index} data contains non-number {value!r}"
            )
    return tuple(raw)


def _parse_guesstimate(index: int, entry: Any) -> Guesstimate:
    if not isinstance(entry, dict):
        raise ValueError(f"Guesstimate #{index} is not an object")
    if "metric" not in entry:
        raise ValueError(f"Guesstimate #{index} is missing 'metric'")

    expression = entry.get("expression")
    if expression is not None:
        expression = str(expression)

    return Guesstimate(
        metric=str(entry["metric"]),
        kind=_parse_kind(index, entry),
        expression=expression,
        description=entry.get("description") or "",
        data=_parse_data(index, entry.get("data")),
    )


def load_model(
    payload: dict[str, Any], url: Optional[str] = None
) -> GuesstimateModel:
    """
    Build a GuesstimateModel from a decoded Guesstimate export.

    Args:
        payload: Dict with "url" and "graph" keys
        url: Overrides the payload's URL (used in the generated header)

    Raises:
        ValueError: If the payload is malformed
    """
    if not isinstance(payload, dict):
        raise ValueError("Model payload must be an object")

    graph = payload.get("graph")
    if not isinstance(graph, dict):
        raise ValueError("Model payload has no 'graph' object")

    metrics = tuple(
        _parse_metric(index, entry)
        for index, entry in enumerate(graph.get("metrics") or [])
    )
    guesstimates = tuple(
        _parse_guesstimate(index, entry)
        for index, entry in enumerate(graph.get("guesstimates") or [])
    )

    return GuesstimateModel(
        url=url if url is not None else str(payload.get("url", "")),
        metrics=metrics,
        guesstimates=guesstimates,
    )
