"""
数据模型

媒体解析、取流协商和任务构建过程中使用的数据结构
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from bilimedia.errors import NoStreamFound, UnsupportedType


class MediaType(str, Enum):
    """媒体类型"""
    VIDEO = "video"            # 普通视频
    BANGUMI = "bangumi"        # 番剧/影视
    LESSON = "lesson"          # 课程
    MUSIC = "music"            # 音频
    MUSIC_LIST = "music_list"  # 歌单
    FAVORITE = "favorite"      # 收藏夹

    @classmethod
    def parse(cls, value: Any) -> "MediaType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedType(value) from None


class StreamCodec(str, Enum):
    """取流格式"""
    DASH = "dash"
    MP4 = "mp4"
    FLV = "flv"

    @property
    def codec_id(self) -> int:
        """下载队列使用的数字编号"""
        return REVERSE_STREAM_CODEC_MAP[self]

    @property
    def fnval(self) -> int:
        """未登录时请求 playurl 使用的 fnval"""
        return STREAM_FNVAL_MAP[self]


REVERSE_STREAM_CODEC_MAP: Dict[StreamCodec, int] = {
    StreamCodec.DASH: 0,
    StreamCodec.MP4: 1,
    StreamCodec.FLV: 2,
}

STREAM_FNVAL_MAP: Dict[StreamCodec, int] = {
    StreamCodec.FLV: 0,
    StreamCodec.MP4: 1,
    StreamCodec.DASH: 16,
}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class CoverImage:
    id: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url}


@dataclass
class Upper:
    """UP主信息（歌单等没有头像）"""
    avatar: Optional[str] = None
    name: Optional[str] = None
    mid: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class SteinGate:
    """互动视频元数据"""
    edge_id: int
    graph_version: int
    story_list: List[Dict[str, Any]] = field(default_factory=list)
    choices: List[Dict[str, Any]] = field(default_factory=list)
    hidden_vars: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EpisodeRef:
    """
    分集引用

    只有与来源类型相关的 ID 字段会被填充，其余保持 None，
    序列化时直接省略。duration 一律为整秒。
    """
    title: str
    cover: str
    desc: str
    duration: int
    series_title: str
    index: int
    aid: Optional[int] = None
    bvid: Optional[str] = None
    cid: Optional[int] = None
    epid: Optional[int] = None
    ssid: Optional[int] = None
    sid: Optional[int] = None
    fid: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class MediaInfo:
    """统一的媒体信息"""
    id: int
    title: str
    cover: str
    desc: str
    type: MediaType
    upper: Upper
    list: List[EpisodeRef]
    covers: List[CoverImage] = field(default_factory=list)
    stat: Dict[str, int] = field(default_factory=dict)  # 稀疏：上游未提供的指标直接缺省
    stein_gate: Optional[SteinGate] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "cover": self.cover,
            "covers": [c.to_dict() for c in self.covers],
            "desc": self.desc,
            "type": self.type.value,
            "stat": dict(self.stat),
            "upper": self.upper.to_dict(),
            "list": [ep.to_dict() for ep in self.list],
        }
        if self.stein_gate is not None:
            data["stein_gate"] = self.stein_gate.to_dict()
        return data


@dataclass
class StreamCandidate:
    """单个清晰度/音质的可下载流"""
    id: int
    base_url: str
    backup_urls: List[str] = field(default_factory=list)
    size: Optional[int] = None
    codecs: Optional[str] = None
    bandwidth: Optional[int] = None

    @classmethod
    def from_upstream(cls, item: Dict[str, Any]) -> "StreamCandidate":
        """兼容 baseUrl/base_url、backupUrl/backup_url 两种写法"""
        from bilimedia.parsers.base import secure_url

        base = item.get("baseUrl") or item.get("base_url") or ""
        backups = item.get("backupUrl") or item.get("backup_url") or []
        return cls(
            id=item.get("id"),
            base_url=secure_url(base),
            backup_urls=[secure_url(u) for u in backups if u],
            size=item.get("size"),
            codecs=item.get("codecs"),
            bandwidth=item.get("bandwidth"),
        )

    @property
    def urls(self) -> List[str]:
        return [self.base_url, *self.backup_urls]

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class PlayUrlBundle:
    """取流协商结果"""
    codec: StreamCodec
    video: Optional[List[StreamCandidate]] = None
    audio: Optional[List[StreamCandidate]] = None
    video_qualities: List[int] = field(default_factory=list)
    audio_qualities: List[int] = field(default_factory=list)

    def __post_init__(self):
        if self.video is None and self.audio is None:
            raise NoStreamFound("PlayUrlBundle requires video or audio")

    @property
    def codec_id(self) -> int:
        return self.codec.codec_id

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "video_qualities": list(self.video_qualities),
            "audio_qualities": list(self.audio_qualities),
            "codec": self.codec.value,
            "codec_id": self.codec_id,
        }
        if self.video is not None:
            data["video"] = [v.to_dict() for v in self.video]
        if self.audio is not None:
            data["audio"] = [a.to_dict() for a in self.audio]
        return data


class CurrentSelect(BaseModel):
    """用户选择：清晰度 dms、编码 cdc、音质 ads、格式 fmt，缺省为 -1"""
    dms: int = -1
    cdc: int = -1
    ads: int = -1
    fmt: int = -1


class ArchiveTimestamp(BaseModel):
    millis: int
    string: str


class ArchiveInfo(BaseModel):
    """交给下载队列的存档信息"""
    title: str
    cover: str
    ts: ArchiveTimestamp
    output_dir: str
    filename: str


class QueueResult(BaseModel):
    """下载队列返回值"""
    status: str = "ok"  # "ok" | "error"
    data: Optional[Any] = None
    error: Optional[Any] = None


class QueueTask(BaseModel):
    """下载队列中的单个子任务"""
    task_type: str = Field(serialization_alias="taskType")
    urls: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
