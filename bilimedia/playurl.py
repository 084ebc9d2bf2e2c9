"""
取流协商

根据分集引用、媒体类型和期望的格式请求 playurl，
并把上游三种互斥的返回结构（durls / durl / dash）整理为统一的 PlayUrlBundle
"""
import asyncio
from typing import Any, Dict, List, Optional

from bilimedia.client import Fetcher
from bilimedia.core.config import settings
from bilimedia.core.logging import logger
from bilimedia.errors import MissingIdentifier, NoStreamFound, UnsupportedType
from bilimedia.models import EpisodeRef, MediaType, PlayUrlBundle, StreamCandidate, StreamCodec
from bilimedia.parsers.base import secure_url
from bilimedia.resolver import MediaInfoResolver


# API 端点
API_VIDEO_PLAYURL = "https://api.bilibili.com/x/player/playurl"
API_VIDEO_PLAYURL_WBI = "https://api.bilibili.com/x/player/wbi/playurl"
API_BANGUMI_PLAYURL = "https://api.bilibili.com/pgc/player/web/v2/playurl"
API_LESSON_PLAYURL = "https://api.bilibili.com/pugv/player/web/playurl"
API_MUSIC_PLAYURL = "https://www.bilibili.com/audio/music-service-c/web/url"

# 音频接口返回的 type -> 音质编号
MUSIC_QUALITY_MAP = {0: 30228, 1: 30280, 2: 30380, 3: 30252}

# 登录后 dash 请求完整的自适应流（杜比、无损、8K 等）
FNVAL_DASH_FULL = 4048


def _payload(body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """playurl 的数据位置：result.video_info > result > data"""
    result = body.get("result")
    if isinstance(result, dict):
        return result.get("video_info") or result
    return body.get("data")


def _durl_candidate(quality: int, durl: Dict[str, Any]) -> StreamCandidate:
    return StreamCandidate(
        id=quality,
        base_url=secure_url(durl.get("url")),
        backup_urls=[secure_url(u) for u in durl.get("backup_url") or [] if u],
        size=durl.get("size"),
    )


class PlayUrlNegotiator:
    """取流协商器"""

    def __init__(self, fetcher: Fetcher, resolver: Optional[MediaInfoResolver] = None):
        self.fetcher = fetcher
        self.resolver = resolver or MediaInfoResolver(fetcher)

    async def negotiate(
        self,
        episode: EpisodeRef,
        media_type: Any,
        codec: StreamCodec,
        *,
        is_login: Optional[bool] = None,
    ) -> PlayUrlBundle:
        """
        获取可下载的流

        Args:
            episode: 分集引用
            media_type: 媒体类型（收藏夹按视频、歌单按音频处理）
            codec: 期望的取流格式
            is_login: 是否已登录，缺省读取配置

        Returns:
            PlayUrlBundle: 统一的取流结果

        Raises:
            NoStreamFound: 上游报错或返回结构无法识别
            MissingIdentifier: 缺少必要的 ID
            UnsupportedType: 未知媒体类型
        """
        media_type = MediaType.parse(media_type)
        if media_type == MediaType.FAVORITE:
            media_type = MediaType.VIDEO
        elif media_type == MediaType.MUSIC_LIST:
            media_type = MediaType.MUSIC
        if is_login is None:
            is_login = settings.is_login

        if media_type == MediaType.MUSIC:
            return await self._negotiate_music(episode)

        params: Dict[str, Any] = {
            "qn": 127 if is_login else 64,
            "fnver": 0,
            "fnval": codec.fnval,
            "fourk": 1,
        }
        if codec == StreamCodec.DASH and is_login:
            params["fnval"] = FNVAL_DASH_FULL

        auth = None
        if media_type == MediaType.VIDEO:
            url = API_VIDEO_PLAYURL_WBI if is_login else API_VIDEO_PLAYURL
            auth = "wbi" if is_login else None
            params["avid"] = episode.aid
            params["cid"] = episode.cid or await self.resolver.get_cid(episode.aid)
        elif media_type == MediaType.BANGUMI:
            url = API_BANGUMI_PLAYURL
            params["ep_id"] = episode.epid
            params["season_id"] = episode.ssid
        elif media_type == MediaType.LESSON:
            url = API_LESSON_PLAYURL
            params["avid"] = episode.aid
            params["cid"] = episode.cid
            params["ep_id"] = episode.epid
            params["season_id"] = episode.ssid
        else:
            raise UnsupportedType(media_type)

        body = await self.fetcher.fetch(url, params=params, auth=auth)
        data = _payload(body)
        if not data:
            raise NoStreamFound(body.get("message") or "No stream found", code=body.get("code"))

        if data.get("durls"):
            return self._from_durls(data)
        if data.get("durl"):
            return await self._from_durl(body, data, url, params, auth)
        if data.get("dash"):
            return self._from_dash(data)

        raise NoStreamFound(body.get("message") or "No stream found", code=body.get("code"))

    async def _negotiate_music(self, episode: EpisodeRef) -> PlayUrlBundle:
        if not episode.sid:
            raise MissingIdentifier("sid")
        params = {"sid": episode.sid, "privilege": 2, "quality": 0}
        body = await self.fetcher.fetch(API_MUSIC_PLAYURL, params=params)
        data = body.get("data")
        if not data or not data.get("cdns"):
            raise NoStreamFound(body.get("msg") or body.get("message") or "No stream found", code=body.get("code"))

        cdns = [secure_url(u) for u in data["cdns"]]
        audio = [StreamCandidate(
            id=MUSIC_QUALITY_MAP.get(data.get("type"), -1),
            base_url=cdns[0],
            backup_urls=cdns,
        )]
        return PlayUrlBundle(
            codec=StreamCodec.DASH,
            audio=audio,
            audio_qualities=[a.id for a in audio],
        )

    def _from_durls(self, data: Dict[str, Any]) -> PlayUrlBundle:
        """一次返回了所有清晰度"""
        video = [_durl_candidate(item.get("quality"), item["durl"][0]) for item in data["durls"]]
        return PlayUrlBundle(
            codec=StreamCodec.MP4,
            video=video,
            video_qualities=[v.id for v in video],
        )

    async def _from_durl(
        self,
        body: Dict[str, Any],
        data: Dict[str, Any],
        url: str,
        params: Dict[str, Any],
        auth: Optional[str],
    ) -> PlayUrlBundle:
        """
        只返回了请求的清晰度

        对 accept_quality 中其余的清晰度并发补请求，
        失败或没有可用地址的清晰度直接丢弃。
        """
        async def fetch_quality(qn: int) -> Optional[StreamCandidate]:
            if qn == data.get("quality"):
                result = data
            else:
                refetched = await self.fetcher.fetch(url, params={**params, "qn": qn}, auth=auth)
                result = _payload(refetched) or {}
            durl = (result.get("durl") or [None])[0]
            if not durl:
                return None
            return _durl_candidate(result.get("quality"), durl)

        accept_quality: List[int] = data.get("accept_quality") or [data.get("quality")]
        results = await asyncio.gather(
            *(fetch_quality(qn) for qn in accept_quality),
            return_exceptions=True,
        )

        video = []
        for qn, result in zip(accept_quality, results):
            if isinstance(result, BaseException):
                logger.warning(f"清晰度 {qn} 获取失败，已跳过: {result}")
                continue
            if result is None:
                logger.warning(f"清晰度 {qn} 无可用地址，已跳过")
                continue
            video.append(result)

        accept_format = data.get("accept_format") or ""
        codec = StreamCodec.FLV if "flv" in accept_format else StreamCodec.MP4
        return PlayUrlBundle(
            codec=codec,
            video=video,
            video_qualities=[v.id for v in video],
        )

    def _from_dash(self, data: Dict[str, Any]) -> PlayUrlBundle:
        """音视频分离，音频依次为：普通音轨、第一条杜比音轨、无损音轨"""
        dash = data["dash"]
        video = [StreamCandidate.from_upstream(v) for v in dash.get("video") or []]

        audio_items = list(dash.get("audio") or [])
        dolby = (dash.get("dolby") or {}).get("audio") or []
        if dolby:
            audio_items.append(dolby[0])
        flac = (dash.get("flac") or {}).get("audio")
        if flac:
            audio_items.append(flac)
        audio = [StreamCandidate.from_upstream(a) for a in audio_items]

        # 同一清晰度可能有多种编码，清晰度列表按首次出现去重
        video_qualities = list(dict.fromkeys(v.id for v in video))
        return PlayUrlBundle(
            codec=StreamCodec.DASH,
            video=video,
            audio=audio,
            video_qualities=video_qualities,
            audio_qualities=[a.id for a in audio],
        )
