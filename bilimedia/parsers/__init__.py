"""
媒体解析器模块

每种媒体类型一个解析函数，把上游各自不同的返回结构整理为统一的 MediaInfo
"""
from .video_parser import parse_video, is_stein_gate
from .bangumi_parser import parse_bangumi
from .lesson_parser import parse_lesson
from .music_parser import parse_music, parse_music_list
from .favorite_parser import parse_favorite

__all__ = [
    'parse_video',
    'is_stein_gate',
    'parse_bangumi',
    'parse_lesson',
    'parse_music',
    'parse_music_list',
    'parse_favorite',
]
