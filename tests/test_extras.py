"""
字幕 / AI 总结测试
"""
import pytest

from bilimedia.errors import MissingIdentifier, UpstreamError
from bilimedia.resolver import API_PLAYER_INFO, MediaInfoResolver
from bilimedia.subtitles import get_subtitle, get_subtitles, srt_time, to_srt
from bilimedia.summary import API_AI_SUMMARY, format_duration, get_ai_summary


def test_srt_time():
    assert srt_time(0) == "00:00:00,000"
    assert srt_time(3723.5) == "01:02:03,500"


def test_to_srt():
    srt = to_srt([
        {"from": 0.5, "to": 2, "content": "第一句"},
        {"from": 2, "to": 4.25, "content": "第二句"},
    ])

    assert srt == (
        "1\n00:00:00,500 --> 00:00:02,000\n第一句\n\n"
        "2\n00:00:02,000 --> 00:00:04,250\n第二句"
    )


@pytest.mark.asyncio
async def test_get_subtitles(fetcher, episode):
    fetcher.routes[API_PLAYER_INFO] = {"code": 0, "data": {"subtitle": {"subtitles": [
        {"lan": "zh-CN", "lan_doc": "中文", "subtitle_url": "//aisubtitle.hdslb.com/a.json"},
    ]}}}

    subtitles = await get_subtitles(MediaInfoResolver(fetcher), episode)

    assert [s["lan"] for s in subtitles] == ["zh-CN"]
    assert fetcher.calls[0].params == {"aid": 170001, "cid": 279786}


@pytest.mark.asyncio
async def test_get_subtitles_requires_aid(fetcher, episode):
    episode.aid = None
    with pytest.raises(MissingIdentifier):
        await get_subtitles(MediaInfoResolver(fetcher), episode)


@pytest.mark.asyncio
async def test_get_subtitle_protocol_relative_url(fetcher):
    fetcher.routes["https://aisubtitle.hdslb.com/a.json"] = {"body": [{"from": 1, "to": 2, "content": "hi"}]}

    srt = await get_subtitle(fetcher, "//aisubtitle.hdslb.com/a.json")

    assert srt == "1\n00:00:01,000 --> 00:00:02,000\nhi"


def test_format_duration():
    assert format_duration(75) == "01:15"
    assert format_duration(3725) == "1:02:05"


@pytest.mark.asyncio
async def test_ai_summary_markdown(fetcher, episode):
    fetcher.routes[API_AI_SUMMARY] = {"code": 0, "data": {"model_result": {
        "result_type": 2,
        "summary": "总结",
        "outline": [{"title": "开头", "timestamp": 0, "part_outline": [{"content": "要点", "timestamp": 75}]}],
    }}}

    text = await get_ai_summary(fetcher, episode, 2)

    call = fetcher.calls[0]
    assert call.auth == "wbi"
    assert call.params == {"aid": 170001, "cid": 279786, "up_mid": 2}
    assert text.startswith("# 第一集 - BV17x411w7KC\n\n总结\n\n")
    assert "## 开头 - [00:00](https://www.bilibili.com/video/BV17x411w7KC?t=0)" in text
    assert "- 要点 - [01:15](https://www.bilibili.com/video/BV17x411w7KC?t=75)" in text


@pytest.mark.asyncio
async def test_ai_summary_check_and_missing(fetcher, episode):
    fetcher.routes[API_AI_SUMMARY] = {"code": 0, "data": {"model_result": {"result_type": 0}}}

    assert await get_ai_summary(fetcher, episode, 2, check=True) == 0
    with pytest.raises(UpstreamError, match="No summary"):
        await get_ai_summary(fetcher, episode, 2)
