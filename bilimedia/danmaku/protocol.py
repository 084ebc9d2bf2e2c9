"""
分段弹幕 protobuf 解码

seg.so 返回 DmSegMobileReply 消息，结构如下（只列出用到的字段）：

    message DmSegMobileReply {
        repeated DanmakuElem elems = 1;
    }

    message DanmakuElem {
        int64  id       = 1;
        int32  progress = 2;   // 出现时间（毫秒）
        int32  mode     = 3;
        int32  fontsize = 4;
        uint32 color    = 5;
        string midHash  = 6;
        string content  = 7;
        int64  ctime    = 8;
        int32  weight   = 9;
        string action   = 10;
        int32  pool     = 11;
        string idStr    = 12;
        int32  attr     = 13;
    }

未知字段按 wire type 跳过。
"""
from dataclasses import dataclass
from typing import Iterator, List, Tuple


WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH = 2
WIRE_FIXED32 = 5


class ProtocolError(ValueError):
    """protobuf 数据损坏"""


@dataclass
class DanmakuElem:
    id: int = 0
    progress: int = 0
    mode: int = 1
    fontsize: int = 25
    color: int = 16777215
    mid_hash: str = ""
    content: str = ""
    ctime: int = 0
    weight: int = 0
    action: str = ""
    pool: int = 0
    id_str: str = ""
    attr: int = 0


_VARINT_FIELDS = {
    1: "id",
    2: "progress",
    3: "mode",
    4: "fontsize",
    5: "color",
    8: "ctime",
    9: "weight",
    11: "pool",
    13: "attr",
}

_STRING_FIELDS = {
    6: "mid_hash",
    7: "content",
    10: "action",
    12: "id_str",
}

# 有符号字段，负数按 64 位补码编码
_SIGNED_FIELDS = {"id", "progress", "mode", "fontsize", "ctime", "weight", "pool", "attr"}


def read_varint(buffer: bytes, pos: int) -> Tuple[int, int]:
    """读取 varint，返回 (值, 新位置)"""
    result = 0
    shift = 0
    while True:
        if pos >= len(buffer):
            raise ProtocolError("truncated varint")
        byte = buffer[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 64:
            raise ProtocolError("varint too long")


def iter_fields(buffer: bytes) -> Iterator[Tuple[int, int, object]]:
    """
    遍历消息中的字段

    Yields:
        (字段号, wire type, 值)；varint 为 int，length-delimited 为 bytes
    """
    pos = 0
    end = len(buffer)
    while pos < end:
        key, pos = read_varint(buffer, pos)
        field_number, wire_type = key >> 3, key & 0x07
        if wire_type == WIRE_VARINT:
            value, pos = read_varint(buffer, pos)
        elif wire_type == WIRE_LENGTH:
            length, pos = read_varint(buffer, pos)
            if pos + length > end:
                raise ProtocolError("truncated length-delimited field")
            value = buffer[pos:pos + length]
            pos += length
        elif wire_type == WIRE_FIXED64:
            if pos + 8 > end:
                raise ProtocolError("truncated fixed64 field")
            value = int.from_bytes(buffer[pos:pos + 8], "little")
            pos += 8
        elif wire_type == WIRE_FIXED32:
            if pos + 4 > end:
                raise ProtocolError("truncated fixed32 field")
            value = int.from_bytes(buffer[pos:pos + 4], "little")
            pos += 4
        else:
            raise ProtocolError(f"unsupported wire type {wire_type}")
        yield field_number, wire_type, value


def decode_elem(buffer: bytes) -> DanmakuElem:
    elem = DanmakuElem()
    for field_number, wire_type, value in iter_fields(buffer):
        if wire_type == WIRE_VARINT and field_number in _VARINT_FIELDS:
            name = _VARINT_FIELDS[field_number]
            if name in _SIGNED_FIELDS and value >= 1 << 63:
                value -= 1 << 64
            setattr(elem, name, value)
        elif wire_type == WIRE_LENGTH and field_number in _STRING_FIELDS:
            setattr(elem, _STRING_FIELDS[field_number], value.decode("utf-8", errors="replace"))
    return elem


def decode_segment(buffer: bytes) -> List[DanmakuElem]:
    """解码一个 DmSegMobileReply 分段"""
    return [
        decode_elem(value)
        for field_number, wire_type, value in iter_fields(bytes(buffer))
        if field_number == 1 and wire_type == WIRE_LENGTH
    ]
