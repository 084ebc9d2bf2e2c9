"""
Pytest Fixtures for bilimedia Tests

所有上游请求都由 FakeFetcher 按 URL 返回预置数据，测试不访问网络。
"""
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

from bilimedia.models import EpisodeRef


@dataclass
class FetchCall:
    url: str
    params: Dict[str, Any]
    auth: Optional[str]
    binary: bool


@dataclass
class FakeFetcher:
    """
    记录每次请求的假 fetcher

    routes 的值可以是：
    - 固定返回值（dict / bytes）
    - 可调用对象，接收 params 返回结果（可抛异常，也可以是协程）
    """
    routes: Dict[str, Any] = field(default_factory=dict)
    calls: List[FetchCall] = field(default_factory=list)

    async def fetch(self, url, *, params=None, auth=None, binary=False):
        params = dict(params or {})
        self.calls.append(FetchCall(url=url, params=params, auth=auth, binary=binary))
        if url not in self.routes:
            raise AssertionError(f"unexpected request: {url}")
        route = self.routes[url]
        if callable(route):
            result = route(params)
            if inspect.isawaitable(result):
                result = await result
            return result
        return route

    def calls_to(self, url: str) -> List[FetchCall]:
        return [c for c in self.calls if c.url == url]


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def episode() -> EpisodeRef:
    return EpisodeRef(
        title="第一集",
        cover="https://i0.hdslb.com/bfs/archive/cover.jpg",
        desc="",
        aid=170001,
        bvid="BV17x411w7KC",
        cid=279786,
        duration=720,
        series_title="测试视频",
        index=0,
    )


def encode_varint(value: int) -> bytes:
    if value < 0:
        value += 1 << 64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_field(number: int, value: Any) -> bytes:
    if isinstance(value, int):
        return encode_varint(number << 3) + encode_varint(value)
    if isinstance(value, str):
        value = value.encode("utf-8")
    return encode_varint((number << 3) | 2) + encode_varint(len(value)) + value


def encode_elem(**fields: Any) -> bytes:
    numbers = {
        "id": 1, "progress": 2, "mode": 3, "fontsize": 4, "color": 5,
        "mid_hash": 6, "content": 7, "ctime": 8, "weight": 9, "action": 10,
        "pool": 11, "id_str": 12, "attr": 13,
    }
    return b"".join(encode_field(numbers[name], value) for name, value in fields.items())


def encode_segment(*elems: bytes) -> bytes:
    """构造一个 DmSegMobileReply 分段"""
    return b"".join(encode_field(1, elem) for elem in elems)


@pytest.fixture
def make_segment() -> Callable[..., bytes]:
    def _make(*elems: Dict[str, Any]) -> bytes:
        return encode_segment(*(encode_elem(**e) for e in elems))
    return _make
