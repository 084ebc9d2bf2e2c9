"""
B站课程解析器

负责解析 /pugv/view/web/season 返回的付费课程
"""
from typing import Any, Dict

from bilimedia.models import EpisodeRef, MediaInfo, MediaType, Upper
from .base import build_covers, optional_id, pick_stat, secure_url, to_seconds


def parse_lesson(data: Dict[str, Any]) -> MediaInfo:
    """解析课程，简介由副标题 + FAQ 标题 + FAQ 内容拼接"""
    season_id = data.get("season_id")
    faq = data.get("faq") or {}
    subtitle = data.get("subtitle", "")
    brief_images = (data.get("brief") or {}).get("img") or []
    up_info = data.get("up_info") or {}

    episodes = [
        EpisodeRef(
            title=ep.get("title", ""),
            cover=secure_url(ep.get("cover")),
            desc=subtitle,
            aid=optional_id(ep.get("aid")),
            cid=optional_id(ep.get("cid")),
            epid=optional_id(ep.get("id")),
            ssid=optional_id(season_id),
            duration=to_seconds(ep.get("duration")),
            series_title=data.get("title", ""),
            index=index,
        )
        for index, ep in enumerate(data.get("episodes") or [])
    ]

    return MediaInfo(
        id=season_id,
        title=data.get("title", ""),
        cover=secure_url(data.get("cover")),
        covers=build_covers((f"brief_{i}", img.get("url")) for i, img in enumerate(brief_images)),
        desc=f"{subtitle}\n{faq.get('title', '')}\n{faq.get('content', '')}",
        type=MediaType.LESSON,
        stat=pick_stat(data.get("stat"), {"play": "play"}),
        upper=Upper(
            avatar=secure_url(up_info.get("avatar")) or None,
            name=up_info.get("uname"),
            mid=up_info.get("mid"),
        ),
        list=episodes,
    )
