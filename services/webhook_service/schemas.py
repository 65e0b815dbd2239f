from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Notification:
    type: str
    resource_id: str
    source: str  # "query" or "body"


@dataclass(frozen=True)
class WebhookOutcome:
    status_code: int
    message: str
    outcome: str


def extract_notification(query: Mapping[str, str], body: Any) -> Notification | None:
    """Find (type, resource id) in ``?topic=&id=`` or in ``{"type", "data": {"id"}}``."""
    topic, resource_id = query.get("topic"), query.get("id")
    if topic and resource_id:
        return Notification(type=str(topic), resource_id=str(resource_id), source="query")

    if isinstance(body, dict):
        data = body.get("data")
        body_type = body.get("type")
        body_id = data.get("id") if isinstance(data, dict) else None
        if body_type and body_id not in (None, ""):
            return Notification(type=str(body_type), resource_id=str(body_id), source="body")

    return None
