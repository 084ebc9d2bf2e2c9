"""
配置与日志上下文测试
"""
import pytest

from bilimedia.client import BilibiliClient
from bilimedia.core.config import Settings, settings, validate_settings
from bilimedia.core.logging import logger, log_context, setup_logging
from bilimedia.resolver import API_MUSIC_INFO, MediaInfoResolver


def test_settings_login_and_cookies():
    assert not Settings(bilibili_sessdata=None).is_login
    assert not Settings(bilibili_sessdata="").is_login

    s = Settings(bilibili_sessdata="sess", bilibili_buvid3="buvid", bilibili_bili_jct=None)
    assert s.is_login
    assert s.cookies() == {"SESSDATA": "sess", "buvid3": "buvid"}


def test_settings_defaults():
    s = Settings()
    assert s.danmaku_segment_seconds == 360
    assert (s.danmaku_pace_min_ms, s.danmaku_pace_max_ms) == (100, 500)
    assert s.favorite_page_size == 36


def test_log_context_injects_ids():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record["extra"]), level="DEBUG")
    try:
        with log_context(media_id="BV1", task_id="t1"):
            logger.info("inside")
        logger.info("outside")
    finally:
        logger.remove(sink_id)

    assert records[0]["media_id"] == "BV1"
    assert records[0]["task_id"] == "t1"
    assert records[1]["media_id"] is None


def test_setup_logging_reads_settings(monkeypatch, capsys):
    monkeypatch.setattr(settings, "log_level", "WARNING")
    monkeypatch.setattr(settings, "log_format", "text")
    try:
        setup_logging()
        with log_context(media_id="BV1"):
            logger.info("hidden")
            logger.warning("shown")
    finally:
        logger.remove()

    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "med=BV1" in err and "shown" in err


def test_validate_settings(monkeypatch):
    validate_settings()

    monkeypatch.setattr(settings, "danmaku_pace_min_ms", 600)
    with pytest.raises(RuntimeError):
        validate_settings()


def test_client_validates_settings(monkeypatch):
    monkeypatch.setattr(settings, "http_timeout", 0)
    with pytest.raises(RuntimeError):
        BilibiliClient()


@pytest.mark.asyncio
async def test_resolve_assigns_request_id(fetcher):
    fetcher.routes[API_MUSIC_INFO] = {"code": 0, "data": {"id": 1, "title": "歌", "duration": 1}}
    records = []
    sink_id = logger.add(lambda message: records.append(message.record["extra"]), level="DEBUG")
    try:
        await MediaInfoResolver(fetcher).resolve("au1", "music")
    finally:
        logger.remove(sink_id)

    request_ids = {r["request_id"] for r in records}
    assert len(request_ids) == 1
    assert None not in request_ids
    assert records[0]["media_id"] == "au1"
