"""
AI 视频总结

调用 conclusion 接口，把总结与分段提纲渲染为 Markdown
"""
from typing import Optional, Union

from bilimedia.client import Fetcher
from bilimedia.errors import MissingIdentifier, UpstreamError
from bilimedia.models import EpisodeRef
from bilimedia.resolver import MediaInfoResolver


API_AI_SUMMARY = "https://api.bilibili.com/x/web-interface/view/conclusion/get"

# result_type: 0 无总结，1 仅总结，2 总结 + 提纲
RESULT_WITH_OUTLINE = 2


def format_duration(seconds: int) -> str:
    """视频内时间点，如 75 -> 01:15，3725 -> 1:02:05"""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def _jump(bvid: str, ts: int) -> str:
    return f"[{format_duration(ts)}](https://www.bilibili.com/video/{bvid}?t={ts})"


async def get_ai_summary(
    fetcher: Fetcher,
    episode: EpisodeRef,
    mid: int,
    *,
    resolver: Optional[MediaInfoResolver] = None,
    check: bool = False,
) -> Union[str, int]:
    """
    获取 AI 总结

    Args:
        episode: 分集引用
        mid: UP主 mid
        check: 为 True 时只返回 result_type，用于判断是否有总结

    Raises:
        MissingIdentifier: 缺少 aid
        UpstreamError: 该视频没有总结
    """
    if not episode.aid:
        raise MissingIdentifier("aid")
    resolver = resolver or MediaInfoResolver(fetcher)
    params = {
        "aid": episode.aid,
        "cid": episode.cid or await resolver.get_cid(episode.aid),
        "up_mid": mid,
    }
    body = await fetcher.fetch(API_AI_SUMMARY, params=params, auth="wbi")
    model_result = body["data"]["model_result"]
    result_type = model_result.get("result_type") or 0
    if check:
        return result_type
    if not result_type:
        raise UpstreamError("No summary", code=body.get("code"))

    text = f"# {episode.title} - {episode.bvid}\n\n{model_result.get('summary', '')}\n\n"
    if result_type == RESULT_WITH_OUTLINE:
        for section in model_result.get("outline") or []:
            text += f"## {section['title']} - {_jump(episode.bvid, section['timestamp'])}\n\n"
            for part in section.get("part_outline") or []:
                text += f"- {part['content']} - {_jump(episode.bvid, part['timestamp'])}\n\n"
    return text
