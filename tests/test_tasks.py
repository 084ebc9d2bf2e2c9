"""
下载任务构建测试
"""
from unittest.mock import AsyncMock

import pytest

from bilimedia.core.config import settings
from bilimedia.errors import NoVideosOrAudios, QueueError
from bilimedia.models import CurrentSelect, QueueResult, StreamCandidate, StreamCodec, Upper
from bilimedia.tasks import build_tasks, get_file_extension, push_back_queue, safe_name


VIDEO = StreamCandidate(id=80, base_url="https://cdn/v.m4s", backup_urls=["https://bak/v.m4s"])
AUDIO = StreamCandidate(id=30280, base_url="https://cdn/a.m4s", backup_urls=[])


def test_build_tasks_video_and_audio():
    tasks = build_tasks(VIDEO, AUDIO, "mp4")

    assert tasks == [
        {"taskType": "video", "urls": ["https://cdn/v.m4s", "https://bak/v.m4s"]},
        {"taskType": "audio", "urls": ["https://cdn/a.m4s"]},
        {"taskType": "merge"},
    ]


def test_build_tasks_flac_audio_only():
    tasks = build_tasks(None, AUDIO, "flac")

    assert [t["taskType"] for t in tasks] == ["audio", "flac"]


def test_build_tasks_requires_stream():
    with pytest.raises(NoVideosOrAudios):
        build_tasks(None, None, "mp4")


@pytest.mark.parametrize("select,ext", [
    (CurrentSelect(ads=30251), "flac"),
    (CurrentSelect(ads=30250), "eac3"),
    (CurrentSelect(ads=30255), "eac3"),
    (CurrentSelect(ads=30280), "m4a"),
    (CurrentSelect(dms=80, ads=30280, fmt=StreamCodec.FLV.codec_id), "flv"),
    (CurrentSelect(dms=80, ads=30280, fmt=StreamCodec.DASH.codec_id), "mp4"),
    (CurrentSelect(), "mp4"),
])
def test_get_file_extension(select, ext):
    assert get_file_extension(select) == ext


def test_safe_name():
    assert safe_name('a/b:c?') == "a_b_c_"
    assert safe_name("  name. ") == "name"
    assert safe_name("") == "untitled"


@pytest.mark.asyncio
async def test_push_back_queue_success(episode):
    queue = AsyncMock()
    queue.push_queue.return_value = {"status": "ok", "data": {"id": "task-1"}}

    data = await push_back_queue(
        queue,
        episode=episode,
        upper=Upper(name="up"),
        video=VIDEO,
        audio=AUDIO,
        select={"dms": 80, "ads": 30280, "cdc": None},
        output_dir="out/dir",
        index=0,
    )

    assert data == {"id": "task-1"}
    archive_info, select, tasks, output = queue.push_queue.await_args.args
    assert select == {"dms": 80, "cdc": -1, "ads": 30280, "fmt": -1}
    assert archive_info["filename"] == "01_第一集_up.mp4"
    assert archive_info["output_dir"] == "out_dir"
    assert archive_info["title"] == "第一集"
    assert isinstance(archive_info["ts"]["millis"], int)
    assert [t["taskType"] for t in tasks] == ["video", "audio", "merge"]
    assert output is None


@pytest.mark.asyncio
async def test_push_back_queue_without_streams_never_calls_queue(episode):
    queue = AsyncMock()

    with pytest.raises(NoVideosOrAudios):
        await push_back_queue(queue, episode=episode, upper=Upper(), select={}, output_dir="o", index=0)

    queue.push_queue.assert_not_awaited()


@pytest.mark.asyncio
async def test_push_back_queue_reraises_queue_error(episode):
    queue = AsyncMock()
    queue.push_queue.return_value = QueueResult(status="error", error={"code": "Exists"})

    with pytest.raises(QueueError) as exc_info:
        await push_back_queue(queue, episode=episode, upper=Upper(), audio=AUDIO,
                              select=CurrentSelect(ads=30251), output_dir="o", index=1)

    assert exc_info.value.error == {"code": "Exists"}


@pytest.mark.asyncio
async def test_push_back_queue_reraises_exception_unchanged(episode):
    queue = AsyncMock()
    failure = RuntimeError("disk full")
    queue.push_queue.return_value = QueueResult(status="error", error=failure)

    with pytest.raises(RuntimeError) as exc_info:
        await push_back_queue(queue, episode=episode, upper=Upper(), audio=AUDIO,
                              select=CurrentSelect(), output_dir="o", index=1)

    assert exc_info.value is failure


@pytest.mark.asyncio
async def test_push_back_queue_default_output_dir(episode, monkeypatch):
    monkeypatch.setattr(settings, "output_dir", "默认/目录")
    queue = AsyncMock()
    queue.push_queue.return_value = QueueResult(data=1)

    await push_back_queue(queue, episode=episode, upper=Upper(), audio=AUDIO,
                          select=CurrentSelect(ads=30280), index=0)

    archive_info = queue.push_queue.await_args.args[0]
    assert archive_info["output_dir"] == "默认_目录"
    assert archive_info["filename"] == "01_第一集.m4a"
