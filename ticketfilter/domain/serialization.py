"""
Encoding of conditions and actions embedded in a filter rule.

Each list is stored as a versioned JSON envelope:

    {"format": 1, "items": [{"kind": "SubjectContains", "values": ["urgent"]}]}

Unknown keys in item records are ignored so newer writers stay readable.
"""

import json
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ticketfilter.domain.actions import Action
from ticketfilter.domain.conditions import Condition

FORMAT_VERSION = 1


class SerializationError(Exception):
    """Raised when an encoded condition or action list cannot be read."""


class ConditionRecord(BaseModel):
    """Stored form of a Condition."""
    model_config = ConfigDict(extra="ignore")

    kind: str
    values: List[str] = Field(default_factory=list)
    custom_field: Optional[str] = None


class ActionRecord(BaseModel):
    """Stored form of an Action."""
    model_config = ConfigDict(extra="ignore")

    kind: str
    value: str = ""
    custom_field: Optional[str] = None
    notify: Optional[str] = None


def _envelope(items: List[dict]) -> str:
    return json.dumps({"format": FORMAT_VERSION, "items": items}, sort_keys=True)


def _items(encoded: Optional[str]) -> List[Any]:
    if not encoded:
        return []
    try:
        data = json.loads(encoded)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Not valid JSON: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise SerializationError("Missing item list")

    version = data.get("format")
    if not isinstance(version, int) or not 1 <= version <= FORMAT_VERSION:
        raise SerializationError(f"Unsupported format version: {version!r}")

    return data["items"]


def encode_conditions(conditions: Sequence[Condition]) -> str:
    return _envelope([
        ConditionRecord(
            kind=c.kind,
            values=list(c.values),
            custom_field=c.custom_field,
        ).model_dump(exclude_none=True)
        for c in conditions
    ])


def decode_conditions(encoded: Optional[str]) -> List[Condition]:
    """
    Decode a condition list.

    Raises:
        SerializationError: If the data is corrupt or from a newer format
    """
    try:
        records = [ConditionRecord.model_validate(item) for item in _items(encoded)]
    except ValidationError as e:
        raise SerializationError(str(e))
    return [Condition(r.kind, tuple(r.values), r.custom_field) for r in records]


def encode_actions(actions: Sequence[Action]) -> str:
    return _envelope([
        ActionRecord(
            kind=a.kind,
            value=a.value,
            custom_field=a.custom_field,
            notify=a.notify,
        ).model_dump(exclude_none=True)
        for a in actions
    ])


def decode_actions(encoded: Optional[str]) -> List[Action]:
    """
    Decode an action list.

    Raises:
        SerializationError: If the data is corrupt or from a newer format
    """
    try:
        records = [ActionRecord.model_validate(item) for item in _items(encoded)]
    except ValidationError as e:
        raise SerializationError(str(e))
    return [Action(r.kind, r.value, r.custom_field, r.notify) for r in records]
