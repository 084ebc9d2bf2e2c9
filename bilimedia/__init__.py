from .client import BilibiliClient, Fetcher
from .errors import (
    MediaError,
    UnsupportedType,
    MissingIdentifier,
    NoStreamFound,
    NoVideosOrAudios,
    UpstreamError,
    QueueError,
    FetchError,
)
from .models import (
    MediaType,
    StreamCodec,
    MediaInfo,
    EpisodeRef,
    StreamCandidate,
    PlayUrlBundle,
    CurrentSelect,
)
from .resolver import MediaInfoResolver
from .playurl import PlayUrlNegotiator
from .danmaku import DanmakuFetcher
from .tasks import push_back_queue, build_tasks, get_file_extension

__all__ = [
    "BilibiliClient",
    "Fetcher",
    "MediaError",
    "UnsupportedType",
    "MissingIdentifier",
    "NoStreamFound",
    "NoVideosOrAudios",
    "UpstreamError",
    "QueueError",
    "FetchError",
    "MediaType",
    "StreamCodec",
    "MediaInfo",
    "EpisodeRef",
    "StreamCandidate",
    "PlayUrlBundle",
    "CurrentSelect",
    "MediaInfoResolver",
    "PlayUrlNegotiator",
    "DanmakuFetcher",
    "push_back_queue",
    "build_tasks",
    "get_file_extension",
]
