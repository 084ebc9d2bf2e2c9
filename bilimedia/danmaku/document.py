"""
弹幕 XML 文档

把分段弹幕累积到同一个 B站原生格式的 <i> 文档中：

    <i><d p="出现时间,模式,字号,颜色,发送时间,弹幕池,用户哈希,ID,权重">内容</d>...</i>
"""
import re
import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from .protocol import DanmakuElem, decode_segment


# XML 1.0 不允许的控制字符
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")


def format_p(elem: DanmakuElem) -> str:
    return ",".join([
        f"{elem.progress / 1000:.5f}",
        str(elem.mode),
        str(elem.fontsize),
        str(elem.color),
        str(elem.ctime),
        str(elem.pool),
        elem.mid_hash,
        elem.id_str or str(elem.id),
        str(elem.weight),
    ])


class DanmakuDocument:
    """可累积的弹幕文档"""

    def __init__(self, chat_id: Optional[int] = None):
        self.root = ET.Element("i")
        ET.SubElement(self.root, "chatserver").text = "chat.bilibili.com"
        if chat_id is not None:
            ET.SubElement(self.root, "chatid").text = str(chat_id)
        self.count = 0

    def extend(self, elems: Iterable[DanmakuElem]) -> None:
        for elem in elems:
            node = ET.SubElement(self.root, "d", {"p": format_p(elem)})
            node.text = _INVALID_XML_CHARS.sub("", elem.content)
            self.count += 1

    def append_segment(self, buffer: bytes) -> int:
        """解码一个分段并追加，返回本段的弹幕数"""
        elems = decode_segment(buffer)
        self.extend(elems)
        return len(elems)

    def to_bytes(self) -> bytes:
        """序列化为 UTF-8 编码的 XML"""
        return ET.tostring(self.root, encoding="utf-8", xml_declaration=True)


def segment_to_xml(buffer: bytes, document: Optional[DanmakuDocument] = None) -> bytes:
    """单个分段直接转 XML；传入 document 时累积到其中"""
    document = document or DanmakuDocument()
    document.append_segment(buffer)
    return document.to_bytes()
