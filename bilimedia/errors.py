"""Error taxonomy.

Callers need to tell "no stream available" (terminal) apart from upstream
failures that may be retried by the fetch layer, so every error raised by the
pipeline carries a classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class MediaError(Exception):
    """Base class for pipeline errors."""

    message: str
    code: Optional[int] = None
    retryable: bool = False
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        if self.code is not None:
            return f"{self.message} (code={self.code})"
        return self.message


class UnsupportedType(MediaError):
    def __init__(self, media_type: Any):
        super().__init__(message=f"No type named {media_type}", details={"type": str(media_type)})


class MissingIdentifier(MediaError):
    def __init__(self, field_name: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message=f"No {field_name} found", details=details)


class NoStreamFound(MediaError):
    def __init__(self, message: str = "No stream found", *, code: Optional[int] = None,
                 details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, code=code, details=details)


class NoVideosOrAudios(MediaError):
    def __init__(self, message: str = "No videos or audios found"):
        super().__init__(message=message)


class UpstreamError(MediaError):
    """上游接口声明的错误，code/message 原样透传"""

    def __init__(self, message: str, *, code: Optional[int] = None,
                 details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, code=code, details=details)


class QueueError(MediaError):
    """任务队列返回的错误"""

    def __init__(self, error: Any):
        super().__init__(message=str(error), details={"error": error})
        self.error = error


class FetchError(MediaError):
    """网络层失败（超时、连接错误等），可重试"""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, retryable=True, details=details)
