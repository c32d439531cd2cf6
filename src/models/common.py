#!/usr/bin/env python3
"""Common error envelope shared by the API routes."""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional
from datetime import datetime


# Error codes and the HTTP status they map to
ERROR_STATUS_CODES = {
    'BAD_REQUEST': 400,
    'VALIDATION_ERROR': 400,
    'NOT_FOUND': 404,
    'CONFLICT': 409,
    'INTERNAL_ERROR': 500,
    'DATABASE_ERROR': 500,
    'EXTERNAL_SERVICE_ERROR': 502,
    'SERVICE_UNAVAILABLE': 503,
}


@dataclass
class ErrorResponse:
    """Standardized error response for consistent API error handling."""

    error_code: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    details: Optional[Dict[str, Any]] = None
    path: Optional[str] = None

    def __post_init__(self):
        if not self.error_code or not isinstance(self.error_code, str):
            raise ValueError('error_code must be a non-empty string')

        if not self.message or not isinstance(self.message, str):
            raise ValueError('message must be a non-empty string')

        # UPPERCASE_WITH_UNDERSCORES
        self.error_code = self.error_code.strip().upper().replace(' ', '_')
        self.message = self.message.strip()

        if self.path is not None:
            self.path = self.path.strip()

    def to_dict(self) -> Dict[str, Any]:
        error_dict = asdict(self)
        error_dict['timestamp'] = self.timestamp.isoformat()
        return error_dict

    def is_client_error(self) -> bool:
        return 400 <= self.get_http_status_code() < 500

    def get_http_status_code(self) -> int:
        return ERROR_STATUS_CODES.get(self.error_code, 500)
