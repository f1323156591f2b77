from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from http import HTTPStatus


class RenderType(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    UNKNOWN = "unknown"


class FetchErrorKind(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    EXTRACTION_ERROR = "EXTRACTION_ERROR"
    UNKNOWN = "UNKNOWN"


def error_kind_for_status(status_code: int) -> FetchErrorKind:
    if status_code == HTTPStatus.NOT_FOUND:
        return FetchErrorKind.NOT_FOUND
    if status_code == HTTPStatus.FORBIDDEN:
        return FetchErrorKind.FORBIDDEN
    return FetchErrorKind.SERVER_ERROR


@dataclass(frozen=True, slots=True)
class FetchResult:
    url: str
    success: bool
    duration_ms: int
    html: str | None = None
    text: str | None = None
    title: str | None = None
    status_code: int | None = None
    error_kind: FetchErrorKind | None = None
    error_message: str | None = None
    detected_render_type: RenderType | None = None

    def __post_init__(self) -> None:
        if self.success and self.error_kind is not None:
            msg = "successful fetch cannot carry an error kind"
            raise ValueError(msg)
        if not self.success and self.error_kind is None:
            msg = "failed fetch requires an error kind"
            raise ValueError(msg)

    @property
    def error(self) -> str | None:
        if self.error_kind is None:
            return None
        if self.error_message:
            return f"{self.error_kind}: {self.error_message}"
        return str(self.error_kind)

    @classmethod
    def failure(
        cls,
        url: str,
        kind: FetchErrorKind,
        message: str,
        *,
        duration_ms: int,
        status_code: int | None = None,
    ) -> FetchResult:
        return cls(
            url=url,
            success=False,
            duration_ms=duration_ms,
            status_code=status_code,
            error_kind=kind,
            error_message=message,
        )
