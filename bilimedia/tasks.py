"""
下载任务构建

把协商得到的音视频流整理为下载队列需要的任务列表与存档信息，
再交给外部队列（实际下载、合并、写文件都由队列完成）
"""
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from bilimedia.core.config import settings
from bilimedia.core.logging import logger, log_context, ensure_task_id
from bilimedia.errors import NoVideosOrAudios, QueueError
from bilimedia.models import (
    ArchiveInfo,
    ArchiveTimestamp,
    CurrentSelect,
    EpisodeRef,
    QueueResult,
    QueueTask,
    StreamCandidate,
    StreamCodec,
    Upper,
)


# 音质编号 -> 纯音频扩展名
AUDIO_EXTENSIONS = {
    30250: "eac3",  # 杜比全景声
    30255: "eac3",  # 杜比全景声
    30251: "flac",  # Hi-Res 无损
}

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')
MAX_NAME_LENGTH = 200


class TaskQueue(Protocol):
    """外部下载队列"""

    async def push_queue(
        self,
        archive_info: Dict[str, Any],
        select: Dict[str, int],
        tasks: List[Dict[str, Any]],
        output: Optional[str],
    ) -> Union[QueueResult, Dict[str, Any]]:
        ...


def safe_name(name: str) -> str:
    """
    文件/目录名净化

    替换文件系统不允许的字符，去掉首尾空白和结尾的点，并限制长度

    Examples:
        >>> safe_name('a/b:c?')
        'a_b_c_'
    """
    val = _UNSAFE_CHARS.sub("_", name or "").strip()
    val = val.rstrip(". ")
    return val[:MAX_NAME_LENGTH] or "untitled"


def timestamp(millis: int, *, file: bool = False) -> str:
    """毫秒时间戳转本地时间字符串；file=True 时使用可作文件名的格式"""
    dt = datetime.fromtimestamp(millis / 1000)
    if file:
        return dt.strftime("%Y-%m-%d_%H-%M-%S")
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def build_filename(episode: EpisodeRef, upper: Upper, index: int) -> str:
    """文件名：序号_标题[_UP主]"""
    parts = [f"{index + 1:02d}", episode.title]
    if upper.name:
        parts.append(upper.name)
    return safe_name("_".join(parts))


def get_file_extension(select: CurrentSelect) -> str:
    """
    根据用户选择推断输出扩展名

    - 只选了音质（dms == -1）：按音质决定 flac / eac3 / m4a
    - 其余情况：flv 格式输出 .flv，否则 .mp4
    """
    if select.dms == -1 and select.ads != -1:
        return AUDIO_EXTENSIONS.get(select.ads, "m4a")
    if select.fmt == StreamCodec.FLV.codec_id:
        return "flv"
    return "mp4"


def build_tasks(
    video: Optional[StreamCandidate],
    audio: Optional[StreamCandidate],
    ext: str,
) -> List[Dict[str, Any]]:
    """
    构建子任务列表

    Raises:
        NoVideosOrAudios: 既没有视频也没有音频
    """
    if video is None and audio is None:
        raise NoVideosOrAudios()

    tasks: List[QueueTask] = []
    if video is not None:
        tasks.append(QueueTask(task_type="video", urls=video.urls))
    if audio is not None:
        tasks.append(QueueTask(task_type="audio", urls=audio.urls))
    if video is not None and audio is not None:
        tasks.append(QueueTask(task_type="merge"))
    if ext == "flac":
        tasks.append(QueueTask(task_type="flac"))
    return [task.to_payload() for task in tasks]


async def push_back_queue(
    queue: TaskQueue,
    *,
    episode: EpisodeRef,
    upper: Upper,
    select: Union[CurrentSelect, Dict[str, Any]],
    index: int,
    output_dir: Optional[str] = None,
    video: Optional[StreamCandidate] = None,
    audio: Optional[StreamCandidate] = None,
    output: Optional[str] = None,
) -> Any:
    """
    构建任务并推入下载队列

    output_dir 缺省使用 settings.output_dir

    Returns:
        队列返回的 data

    Raises:
        NoVideosOrAudios: 没有可下载的流（不会调用队列）
        QueueError: 队列返回错误
    """
    if video is None and audio is None:
        raise NoVideosOrAudios()

    if not isinstance(select, CurrentSelect):
        # 缺失或为 None 的字段统一为 -1
        select = CurrentSelect(**{k: v for k, v in (select or {}).items() if v is not None})
    ext = get_file_extension(select)

    now = int(time.time() * 1000)
    archive_info = ArchiveInfo(
        title=episode.title,
        cover=episode.cover,
        ts=ArchiveTimestamp(millis=now, string=timestamp(now, file=True)),
        output_dir=safe_name(output_dir or settings.output_dir),
        filename=f"{build_filename(episode, upper, index)}.{ext}",
    )
    tasks = build_tasks(video, audio, ext)

    with log_context(task_id=ensure_task_id()):
        logger.info(f"推送下载任务: {archive_info.filename} ({', '.join(t['taskType'] for t in tasks)})")
        result = await queue.push_queue(archive_info.model_dump(), select.model_dump(), tasks, output)

    if not isinstance(result, QueueResult):
        result = QueueResult.model_validate(result)
    if result.status == "error":
        logger.error(f"下载队列返回错误: {result.error}")
        if isinstance(result.error, Exception):
            raise result.error
        raise QueueError(result.error)
    return result.data
