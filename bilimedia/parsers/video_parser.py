"""
B站视频解析器

负责将 /x/web-interface/view 的返回整理为统一的 MediaInfo，
分集来源优先级：合辑(ugc_season) > 分P(pages) > 单集
"""
from typing import Any, Dict, List, Optional

from bilimedia.models import EpisodeRef, MediaInfo, MediaType, SteinGate, Upper
from .base import build_covers, optional_id, pick_stat, secure_url, to_seconds


VIDEO_STAT_FIELDS = {
    "play": "view",
    "danmaku": "danmaku",
    "reply": "reply",
    "like": "like",
    "coin": "coin",
    "favorite": "favorite",
    "share": "share",
}


def _season_episodes(data: Dict[str, Any]) -> List[EpisodeRef]:
    season = data["ugc_season"]
    episodes = season["sections"][0]["episodes"]
    return [
        EpisodeRef(
            title=ep.get("title", ""),
            cover=secure_url(ep.get("arc", {}).get("pic")),
            desc=ep.get("arc", {}).get("desc", ""),
            aid=optional_id(ep.get("aid")),
            bvid=ep.get("bvid") or None,
            cid=optional_id(ep.get("cid")),
            duration=to_seconds(ep.get("page", {}).get("duration")),
            series_title=season.get("title", ""),
            index=index,
        )
        for index, ep in enumerate(episodes)
    ]


def _page_episodes(data: Dict[str, Any]) -> List[EpisodeRef]:
    title = data.get("title", "")
    return [
        EpisodeRef(
            title=page.get("part") or title,
            cover=secure_url(data.get("pic")),
            desc=data.get("desc", ""),
            aid=optional_id(data.get("aid")),
            bvid=data.get("bvid") or None,
            cid=optional_id(page.get("cid")),
            duration=to_seconds(page.get("duration")),
            series_title=title or page.get("part", ""),
            index=index,
        )
        for index, page in enumerate(data["pages"])
    ]


def _single_episode(data: Dict[str, Any]) -> List[EpisodeRef]:
    return [EpisodeRef(
        title=data.get("title", ""),
        cover=secure_url(data.get("pic")),
        desc=data.get("desc", ""),
        aid=optional_id(data.get("aid")),
        bvid=data.get("bvid") or None,
        cid=optional_id(data.get("cid")),
        duration=to_seconds(data.get("duration")),
        series_title=data.get("title", ""),
        index=0,
    )]


def parse_video(data: Dict[str, Any], stein_gate: Optional[SteinGate] = None) -> MediaInfo:
    """
    解析B站视频

    Args:
        data: view 接口返回的 data 字段
        stein_gate: 已解析好的互动视频元数据（仅互动视频）

    Returns:
        MediaInfo: 解析后的统一媒体信息
    """
    if data.get("ugc_season"):
        episodes = _season_episodes(data)
    elif data.get("pages"):
        episodes = _page_episodes(data)
    else:
        episodes = _single_episode(data)

    owner = data.get("owner") or {}
    ugc_season = data.get("ugc_season") or {}

    return MediaInfo(
        id=data.get("aid"),
        title=data.get("title", ""),
        cover=secure_url(data.get("pic")),
        covers=build_covers([("ugc_cover", ugc_season.get("cover"))]),
        desc=data.get("desc", ""),
        type=MediaType.VIDEO,
        stein_gate=stein_gate,
        stat=pick_stat(data.get("stat"), VIDEO_STAT_FIELDS),
        upper=Upper(
            avatar=secure_url(owner.get("face")) or None,
            name=owner.get("name"),
            mid=owner.get("mid"),
        ),
        list=episodes,
    )


def is_stein_gate(data: Dict[str, Any]) -> bool:
    """是否为互动视频"""
    rights = data.get("rights") or {}
    return bool(rights.get("is_stein_gate"))
