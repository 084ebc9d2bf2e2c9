"""
字幕获取

字幕列表来自 player 接口，单条字幕为 JSON，转换为 SRT 文本
"""
from typing import Any, Dict, List

from bilimedia.client import Fetcher
from bilimedia.errors import MissingIdentifier
from bilimedia.models import EpisodeRef
from bilimedia.resolver import MediaInfoResolver


def srt_time(seconds: float) -> str:
    """秒数转 SRT 时间戳，如 3723.5 -> 01:02:03,500"""
    total_ms = int(round(seconds * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, ms = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def to_srt(lines: List[Dict[str, Any]]) -> str:
    return "\n\n".join(
        f"{i}\n{srt_time(line['from'])} --> {srt_time(line['to'])}\n{line['content']}"
        for i, line in enumerate(lines, 1)
    )


async def get_subtitles(resolver: MediaInfoResolver, episode: EpisodeRef) -> List[Dict[str, Any]]:
    """获取分集可用的字幕列表（lan、lan_doc、subtitle_url 等）"""
    if not episode.aid:
        raise MissingIdentifier("aid")
    player_info = await resolver.get_player_info(episode.aid, episode.cid)
    return (player_info.get("subtitle") or {}).get("subtitles") or []


async def get_subtitle(fetcher: Fetcher, url: str) -> str:
    """下载单条字幕并转换为 SRT"""
    if url.startswith("//"):
        url = "https:" + url
    body = await fetcher.fetch(url)
    return to_srt(body.get("body") or [])
