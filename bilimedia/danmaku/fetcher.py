"""
弹幕获取

两种互斥模式，由 prefer_pb 决定：
- 分段 protobuf：每 360 秒一段，按顺序逐段请求并合并为一个 XML 文档，段间随机等待
- 旧版 list.so：一次请求，返回 raw deflate 压缩数据，解压后原样返回（不做 XML 转换）

历史弹幕固定走单次 protobuf 请求，并始终转换为 XML。
"""
import asyncio
import math
import random
import zlib
from typing import Awaitable, Callable, Optional

from bilimedia.client import Fetcher
from bilimedia.core.config import settings
from bilimedia.core.logging import logger, log_context
from bilimedia.errors import MissingIdentifier
from bilimedia.models import EpisodeRef
from bilimedia.resolver import MediaInfoResolver
from .document import DanmakuDocument, segment_to_xml


# API 端点
API_DM_SEGMENT = "https://api.bilibili.com/x/v2/dm/web/seg.so"
API_DM_SEGMENT_WBI = "https://api.bilibili.com/x/v2/dm/wbi/web/seg.so"
API_DM_LEGACY = "https://api.bilibili.com/x/v1/dm/list.so"
API_DM_HISTORY = "https://api.bilibili.com/x/v2/dm/web/history/seg.so"

Sleep = Callable[[float], Awaitable[None]]


def segment_count(duration: Optional[int], segment_seconds: int = 360) -> int:
    """分段数量，时长为 0 时也至少请求一段"""
    return max(1, math.ceil((duration or 0) / segment_seconds))


def inflate_raw(buffer: bytes) -> bytes:
    """解压 raw deflate（无 zlib 头）数据"""
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    return decompressor.decompress(buffer) + decompressor.flush()


class DanmakuFetcher:
    """弹幕获取器"""

    def __init__(
        self,
        fetcher: Fetcher,
        resolver: Optional[MediaInfoResolver] = None,
        *,
        sleep: Sleep = asyncio.sleep,
        jitter: Callable[[int, int], int] = random.randint,
    ):
        """
        Args:
            fetcher: 请求协作者
            resolver: 用于查询 cid，缺省用同一个 fetcher 创建
            sleep: 段间等待函数（测试时可替换）
            jitter: 生成随机等待毫秒数的函数
        """
        self.fetcher = fetcher
        self.resolver = resolver or MediaInfoResolver(fetcher)
        self.sleep = sleep
        self.jitter = jitter

    async def _oid(self, episode: EpisodeRef) -> int:
        if not episode.aid:
            raise MissingIdentifier("aid")
        return episode.cid or await self.resolver.get_cid(episode.aid)

    async def fetch_live(
        self,
        episode: EpisodeRef,
        *,
        prefer_pb: Optional[bool] = None,
        is_login: Optional[bool] = None,
    ) -> bytes:
        """
        获取当前弹幕

        Returns:
            bytes: prefer_pb 为 True 时是 UTF-8 XML；
                   否则是 list.so 解压后的原始数据
        """
        if prefer_pb is None:
            prefer_pb = settings.prefer_pb_danmaku
        if is_login is None:
            is_login = settings.is_login

        oid = await self._oid(episode)
        with log_context(media_id=str(oid)):
            if prefer_pb:
                return await self._fetch_segments(episode, oid, is_login)

            logger.debug("使用旧版弹幕接口")
            buffer = await self.fetcher.fetch(API_DM_LEGACY, params={"oid": oid}, binary=True)
            return inflate_raw(buffer)

    async def _fetch_segments(self, episode: EpisodeRef, oid: int, is_login: bool) -> bytes:
        url = API_DM_SEGMENT_WBI if is_login else API_DM_SEGMENT
        auth = "wbi" if is_login else None
        document = DanmakuDocument(chat_id=oid)
        total = segment_count(episode.duration, settings.danmaku_segment_seconds)

        # 所有分段写入同一个文档，必须逐段顺序请求
        for index in range(1, total + 1):
            params = {"type": 1, "oid": oid, "pid": episode.aid, "segment_index": index}
            buffer = await self.fetcher.fetch(url, params=params, auth=auth, binary=True)
            added = document.append_segment(buffer)
            logger.debug(f"弹幕分段 {index}/{total}: {added} 条")
            if index == total:
                break
            delay_ms = self.jitter(settings.danmaku_pace_min_ms, settings.danmaku_pace_max_ms)
            await self.sleep(delay_ms / 1000)

        logger.info(f"弹幕获取完成: {document.count} 条，共 {total} 段")
        return document.to_bytes()

    async def fetch_history(self, episode: EpisodeRef, date: str) -> bytes:
        """
        获取指定日期的历史弹幕

        Args:
            episode: 分集引用
            date: 日期，格式 YYYY-MM-DD

        Returns:
            bytes: UTF-8 XML
        """
        oid = await self._oid(episode)
        params = {"type": 1, "oid": oid, "date": date}
        buffer = await self.fetcher.fetch(API_DM_HISTORY, params=params, binary=True)
        return segment_to_xml(buffer, DanmakuDocument(chat_id=oid))
