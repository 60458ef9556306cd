"""
Response envelope helpers.

Every endpoint answers with ``{status, data | error, timestamp}``.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi.responses import JSONResponse


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_envelope(data: Any) -> Dict[str, Any]:
    return {"status": "success", "data": data, "timestamp": utc_timestamp()}


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    """Build the error envelope response."""
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "error": message, "timestamp": utc_timestamp()},
    )
