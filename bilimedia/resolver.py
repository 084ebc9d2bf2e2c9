"""
媒体信息解析

根据 (id, 类型) 请求对应接口，并用 parsers 中的解析函数整理为统一的 MediaInfo
"""
from typing import Any, Dict, Optional

from bilimedia.client import Fetcher
from bilimedia.core.config import settings
from bilimedia.core.logging import logger, log_context, new_request_id
from bilimedia.errors import MissingIdentifier
from bilimedia.models import MediaInfo, MediaType, SteinGate
from bilimedia.parsers import (
    is_stein_gate,
    parse_bangumi,
    parse_favorite,
    parse_lesson,
    parse_music,
    parse_music_list,
    parse_video,
)
from bilimedia.parsers.base import extract_numeric_id, has_prefix, secure_entries


# API 端点
API_VIDEO_INFO = "https://api.bilibili.com/x/web-interface/view"
API_BANGUMI_INFO = "https://api.bilibili.com/pgc/view/web/season"
API_LESSON_INFO = "https://api.bilibili.com/pugv/view/web/season"
API_MUSIC_INFO = "https://www.bilibili.com/audio/music-service-c/web/song/info"
API_MUSIC_LIST_INFO = "https://www.bilibili.com/audio/music-service-c/web/menu/info"
API_MUSIC_LIST_SONGS = "https://www.bilibili.com/audio/music-service-c/web/song/of-menu"
API_FAVORITE_INFO = "https://api.bilibili.com/x/v3/fav/resource/list"
API_PAGE_LIST = "https://api.bilibili.com/x/player/pagelist"
API_PLAYER_INFO = "https://api.bilibili.com/x/player/wbi/v2"
API_STEIN_INFO = "https://api.bilibili.com/x/stein/edgeinfo_v2"


class MediaInfoResolver:
    """媒体信息解析器"""

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher

    async def resolve(self, media_id: str, media_type: Any, page: Optional[int] = None) -> MediaInfo:
        """
        解析媒体信息

        Args:
            media_id: 松散格式的ID，如 BV1xx411c7XD、av170001、ss12345、ep12345、au123
            media_type: 媒体类型
            page: 收藏夹页码（仅 Favorite 使用）

        Returns:
            MediaInfo: 统一的媒体信息

        Raises:
            UnsupportedType: 未知媒体类型
        """
        media_type = MediaType.parse(media_type)
        numeric_id = extract_numeric_id(media_id)

        with log_context(request_id=new_request_id(), media_id=media_id):
            logger.debug(f"解析媒体信息: type={media_type.value}")

            if media_type == MediaType.VIDEO:
                params = {"bvid": media_id} if has_prefix(media_id, "bv") else {"aid": numeric_id}
                body = await self.fetcher.fetch(API_VIDEO_INFO, params=params)
                info = await self._resolve_video(body["data"])
            elif media_type == MediaType.BANGUMI:
                params = {"season_id": numeric_id} if has_prefix(media_id, "ss") else {"ep_id": numeric_id}
                body = await self.fetcher.fetch(API_BANGUMI_INFO, params=params)
                info = parse_bangumi(body["result"])
            elif media_type == MediaType.LESSON:
                params = {"season_id": numeric_id} if has_prefix(media_id, "ss") else {"ep_id": numeric_id}
                body = await self.fetcher.fetch(API_LESSON_INFO, params=params)
                info = parse_lesson(body["data"])
            elif media_type == MediaType.MUSIC:
                body = await self.fetcher.fetch(API_MUSIC_INFO, params={"sid": numeric_id})
                info = parse_music(body["data"])
            elif media_type == MediaType.MUSIC_LIST:
                body = await self.fetcher.fetch(API_MUSIC_LIST_INFO, params={"sid": numeric_id})
                songs = await self.fetcher.fetch(API_MUSIC_LIST_SONGS, params={
                    "pn": 1, "ps": settings.music_list_page_size, "sid": numeric_id,
                })
                info = parse_music_list(body["data"], songs["data"]["data"] or [])
            else:
                params = {
                    "media_id": numeric_id,
                    "ps": settings.favorite_page_size,
                    "pn": page or 1,
                    "platform": "web",
                }
                body = await self.fetcher.fetch(API_FAVORITE_INFO, params=params)
                info = parse_favorite(body["data"])

            logger.info(f"媒体信息已解析: {info.title} ({len(info.list)} 集)")
            return info

    async def _resolve_video(self, data: Dict[str, Any]) -> MediaInfo:
        stein_gate = None
        if is_stein_gate(data):
            # 依次获取 player 信息 -> 剧情图版本 -> 分支信息，后一步依赖前一步结果
            player_info = await self.get_player_info(data["aid"], data.get("cid"))
            graph_version = player_info["interaction"]["graph_version"]
            stein_info = await self.get_stein_info(data["aid"], graph_version)
            stein_gate = SteinGate(
                edge_id=1,
                graph_version=graph_version,
                story_list=secure_entries(stein_info.get("story_list")),
                choices=secure_entries(stein_info["edges"]["questions"][0]["choices"]),
                hidden_vars=stein_info.get("hidden_vars") or [],
            )
        return parse_video(data, stein_gate=stein_gate)

    async def get_cid(self, aid: Optional[int]) -> int:
        """通过分P列表获取第一个分P的 cid"""
        if not aid:
            raise MissingIdentifier("aid")
        body = await self.fetcher.fetch(API_PAGE_LIST, params={"aid": aid})
        return body["data"][0]["cid"]

    async def get_player_info(self, aid: int, cid: Optional[int] = None) -> Dict[str, Any]:
        """获取播放器信息（互动视频剧情图版本、字幕列表等）"""
        params = {"aid": aid, "cid": cid or await self.get_cid(aid)}
        body = await self.fetcher.fetch(API_PLAYER_INFO, params=params, auth="wbi")
        return body["data"]

    async def get_stein_info(self, aid: int, graph_version: int, edge_id: Optional[int] = None) -> Dict[str, Any]:
        """获取互动视频分支信息"""
        params = {"aid": aid, "graph_version": graph_version}
        if edge_id:
            params["edge_id"] = edge_id
        body = await self.fetcher.fetch(API_STEIN_INFO, params=params, auth="wbi")
        return body["data"]
