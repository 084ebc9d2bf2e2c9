"""
B站收藏夹解析器
"""
from typing import Any, Dict

from bilimedia.models import EpisodeRef, MediaInfo, MediaType, Upper
from .base import optional_id, pick_stat, secure_url, to_seconds


FAVORITE_STAT_FIELDS = {
    "play": "play",
    "like": "thumb_up",
    "favorite": "collect",
    "share": "share",
}


def parse_favorite(data: Dict[str, Any]) -> MediaInfo:
    """
    解析收藏夹

    每个分集的 aid 取被收藏内容自身的 id，并附带收藏夹 id(fid)；
    对外报告的类型为 Video。
    """
    info = data.get("info") or {}
    medias = data.get("medias") or []
    upper = info.get("upper") or {}
    folder_id = info.get("id")
    intro = info.get("intro", "")

    episodes = [
        EpisodeRef(
            title=item.get("title", ""),
            cover=secure_url(item.get("cover")),
            desc=intro,
            aid=optional_id(item.get("id")),
            fid=optional_id(folder_id),
            bvid=item.get("bvid") or None,
            duration=to_seconds(item.get("duration")),
            series_title=info.get("title", ""),
            index=index,
        )
        for index, item in enumerate(medias)
    ]

    return MediaInfo(
        id=folder_id,
        title=info.get("title", ""),
        cover=secure_url(info.get("cover")),
        covers=[],
        desc=intro,
        type=MediaType.VIDEO,
        stat=pick_stat(info.get("cnt_info"), FAVORITE_STAT_FIELDS),
        upper=Upper(
            avatar=secure_url(upper.get("face")) or None,
            name=upper.get("name"),
            mid=upper.get("mid"),
        ),
        list=episodes,
    )
