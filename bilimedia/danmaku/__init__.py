"""
弹幕模块
"""
from .protocol import DanmakuElem, decode_segment
from .document import DanmakuDocument, segment_to_xml
from .fetcher import DanmakuFetcher, inflate_raw, segment_count

__all__ = [
    'DanmakuElem',
    'decode_segment',
    'DanmakuDocument',
    'segment_to_xml',
    'DanmakuFetcher',
    'inflate_raw',
    'segment_count',
]
