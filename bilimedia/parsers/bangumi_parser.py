"""
B站番剧/影视解析器

负责解析 /pgc/view/web/season 返回的 PGC 内容
"""
from typing import Any, Dict

from bilimedia.models import EpisodeRef, MediaInfo, MediaType, Upper
from .base import build_covers, optional_id, pick_stat, secure_url, to_seconds


BANGUMI_STAT_FIELDS = {
    "play": "views",
    "danmaku": "danmakus",
    "reply": "reply",
    "like": "likes",
    "coin": "coins",
    "favorite": "favorite",
    "share": "share",
}


def parse_bangumi(result: Dict[str, Any]) -> MediaInfo:
    """
    解析B站番剧/电影（PGC内容）

    封面：方形封面，若在 seasons 中找到当前季度则追加 16:9 与 16:10 横版封面。
    PGC 的分集时长单位为毫秒，这里统一转成秒。

    Args:
        result: season 接口返回的 result 字段

    Returns:
        MediaInfo: 解析后的统一媒体信息
    """
    season_id = result.get("season_id")
    season = next(
        (s for s in result.get("seasons") or [] if s.get("season_id") == season_id),
        None,
    )

    cover_candidates = [("square_cover", result.get("square_cover"))]
    if season:
        cover_candidates.append(("horizontal_cover_169", season.get("horizontal_cover_169")))
        cover_candidates.append(("horizontal_cover_1610", season.get("horizontal_cover_1610")))

    up_info = result.get("up_info") or {}
    evaluate = result.get("evaluate", "")

    episodes = [
        EpisodeRef(
            title=f"{ep.get('share_copy', '')} - {ep.get('show_title', '')}",
            cover=secure_url(ep.get("cover")),
            desc=evaluate,
            aid=optional_id(ep.get("aid")),
            bvid=ep.get("bvid") or None,
            cid=optional_id(ep.get("cid")),
            epid=optional_id(ep.get("ep_id")),
            ssid=optional_id(season_id),
            duration=to_seconds(ep.get("duration"), millis=True),
            series_title=result.get("season_title", ""),
            index=index,
        )
        for index, ep in enumerate(result.get("episodes") or [])
    ]

    return MediaInfo(
        id=season_id,
        title=result.get("title", ""),
        cover=secure_url(result.get("cover")),
        covers=build_covers(cover_candidates),
        desc=evaluate,
        type=MediaType.BANGUMI,
        stat=pick_stat(result.get("stat"), BANGUMI_STAT_FIELDS),
        upper=Upper(
            avatar=secure_url(up_info.get("avatar")) or None,
            name=up_info.get("uname"),
            mid=up_info.get("mid"),
        ),
        list=episodes,
    )
