"""
解析器公共工具模块

提供所有媒体解析器共用的工具函数，包括：
- URL 安全化（http → https）
- ID 提取
- 统计数据整理
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bilimedia.models import CoverImage


_NUMERIC_RUN = re.compile(r"\d+")


def secure_url(url: Any) -> str:
    """
    将URL统一为 https

    处理：
    - http:// 开头的 URL 改为 https://
    - 协议相对 URL（如//i0.hdslb.com/...）补全为 https

    Args:
        url: URL字符串或其他类型

    Returns:
        str: 安全化后的URL，无效输入返回空字符串
    """
    if not url or not isinstance(url, str):
        return ""

    u = url.strip()
    if u.startswith("//"):
        return "https:" + u
    if u.startswith("http:"):
        return "https:" + u[len("http:"):]
    return u


def extract_numeric_id(value: str) -> Optional[int]:
    """提取字符串中第一段连续数字，如 'ep12345' -> 12345"""
    match = _NUMERIC_RUN.search(value or "")
    return int(match.group(0)) if match else None


def optional_id(value: Any) -> Optional[int]:
    """上游用 0 表示缺失的 ID，统一转成 None"""
    if value in (None, "", 0, "0"):
        return None
    return int(value)


def has_prefix(value: str, prefix: str) -> bool:
    """大小写不敏感的前缀判断（'BV'/'bv'、'ss'/'SS'）"""
    return (value or "").lower().startswith(prefix.lower())


def build_covers(candidates: Iterable[Tuple[str, Any]]) -> List[CoverImage]:
    """
    构建封面列表

    过滤空 URL，并对剩余 URL 做 https 处理。
    """
    covers = []
    for cover_id, url in candidates:
        url = secure_url(url)
        if url:
            covers.append(CoverImage(id=cover_id, url=url))
    return covers


def pick_stat(source: Optional[Dict[str, Any]], mapping: Dict[str, str]) -> Dict[str, int]:
    """
    按映射提取统计数据

    mapping: 统一指标名 -> 上游字段名。上游缺失的指标不会补零。
    """
    if not source:
        return {}
    stat = {}
    for name, upstream_key in mapping.items():
        value = source.get(upstream_key)
        if value is not None:
            stat[name] = value
    return stat


def to_seconds(value: Any, *, millis: bool = False) -> int:
    """时长统一为整秒"""
    if not value:
        return 0
    if millis:
        return int(value) // 1000
    return int(value)


def secure_entries(items: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """对上游原样透传的条目，将其中的 URL 字段（*cover / *url）统一为 https"""
    entries = []
    for item in items or []:
        entry = dict(item)
        for key, value in item.items():
            if isinstance(value, str) and key.lower().endswith(("cover", "url")):
                entry[key] = secure_url(value)
        entries.append(entry)
    return entries
