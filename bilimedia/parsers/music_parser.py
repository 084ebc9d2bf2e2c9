"""
B站音频/歌单解析器
"""
from typing import Any, Dict, List

from bilimedia.models import EpisodeRef, MediaInfo, MediaType, Upper
from .base import optional_id, pick_stat, secure_url, to_seconds


MUSIC_STAT_FIELDS = {
    "play": "play",
    "reply": "comment",
    "favorite": "collect",
    "share": "share",
}


def _track_episode(item: Dict[str, Any], *, desc: str, series_title: str, index: int) -> EpisodeRef:
    return EpisodeRef(
        title=item.get("title", ""),
        cover=secure_url(item.get("cover")),
        desc=desc,
        aid=optional_id(item.get("aid")),
        sid=optional_id(item.get("id")),
        bvid=item.get("bvid") or None,
        cid=optional_id(item.get("cid")),
        duration=to_seconds(item.get("duration")),
        series_title=series_title,
        index=index,
    )


def parse_music(data: Dict[str, Any]) -> MediaInfo:
    """解析单曲，列表只有一个分集"""
    return MediaInfo(
        id=data.get("aid"),
        title=data.get("title", ""),
        cover=secure_url(data.get("cover")),
        covers=[],
        desc=data.get("intro", ""),
        type=MediaType.MUSIC,
        stat=pick_stat(data.get("statistic"), MUSIC_STAT_FIELDS),
        upper=Upper(name=data.get("uname"), mid=data.get("uid")),
        list=[_track_episode(data, desc=data.get("intro", ""), series_title=data.get("title", ""), index=0)],
    )


def parse_music_list(data: Dict[str, Any], tracks: List[Dict[str, Any]]) -> MediaInfo:
    """
    解析歌单

    歌单本身的信息与曲目列表来自两个接口；对外报告的类型为 Music，
    这样后续取流按单曲处理。
    """
    intro = data.get("intro", "")
    title = data.get("title", "")
    return MediaInfo(
        id=data.get("menuId"),
        title=title,
        cover=secure_url(data.get("cover")),
        covers=[],
        desc=intro,
        type=MediaType.MUSIC,
        stat=pick_stat(data.get("statistic"), MUSIC_STAT_FIELDS),
        upper=Upper(name=data.get("uname"), mid=data.get("uid")),
        list=[
            _track_episode(item, desc=intro, series_title=title, index=index)
            for index, item in enumerate(tracks)
        ],
    )
