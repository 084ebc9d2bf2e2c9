"""
B站 HTTP 客户端

解析器、取流协商和弹幕获取共用的请求入口：
- JSON / 二进制两种返回
- auth="wbi" 的请求交给外部注入的签名函数处理
- 上游错误码（且没有可用数据）转换为 UpstreamError
"""
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

import httpx

from bilimedia.core.config import settings, validate_settings
from bilimedia.core.logging import logger
from bilimedia.errors import FetchError, UpstreamError


Params = Dict[str, Any]
Signer = Callable[[Params], Awaitable[Params]]
Body = Union[Dict[str, Any], bytes]


class Fetcher(Protocol):
    """请求协作者接口，测试中可替换为假实现"""

    async def fetch(
        self,
        url: str,
        *,
        params: Optional[Params] = None,
        auth: Optional[str] = None,
        binary: bool = False,
    ) -> Body:
        ...


def format_request_error(e: Exception) -> str:
    """
    格式化HTTP请求异常信息

    httpx 的异常在某些情况下 str(e) 为空；
    这里补齐类型与 repr，便于排查问题
    """
    msg = str(e).strip()
    if msg:
        return msg
    return f"{type(e).__name__}: {e!r}"


def check_response(body: Dict[str, Any], url: str) -> Dict[str, Any]:
    """
    检查API响应状态

    code 非 0 且没有 data/result 时抛出 UpstreamError；
    带有数据的错误响应原样返回，由调用方判断（如 playurl）。
    """
    code = body.get("code", 0)
    if code in (0, None):
        return body
    if body.get("data") is not None or body.get("result") is not None:
        return body
    message = body.get("message") or body.get("msg") or "unknown error"
    raise UpstreamError(message, code=code, details={"url": url})


class BilibiliClient:
    """基于 httpx 的默认请求实现"""

    def __init__(
        self,
        *,
        cookies: Optional[Dict[str, str]] = None,
        signer: Optional[Signer] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        初始化

        Args:
            cookies: B站cookies（缺省读取配置）
            signer: wbi 签名函数，接收参数返回签名后的参数
            client: 外部传入的 httpx.AsyncClient（测试时可注入 MockTransport）

        Raises:
            RuntimeError: 配置校验失败
        """
        validate_settings()
        self.headers = {
            'User-Agent': settings.user_agent,
            'Referer': settings.referer,
        }
        self.signer = signer
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=self.headers,
            cookies=cookies if cookies is not None else settings.cookies(),
            timeout=settings.http_timeout,
            proxy=settings.http_proxy,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "BilibiliClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _prepare_params(self, params: Optional[Params], auth: Optional[str]) -> Params:
        params = dict(params or {})
        if auth != "wbi":
            return params
        if self.signer is None:
            logger.warning("未配置 wbi 签名函数，请求将不带签名发送")
            return params
        return await self.signer(params)

    async def fetch(
        self,
        url: str,
        *,
        params: Optional[Params] = None,
        auth: Optional[str] = None,
        binary: bool = False,
    ) -> Body:
        query = await self._prepare_params(params, auth)
        logger.debug(f"请求: {url} params={query}")
        try:
            response = await self._client.get(url, params=query)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"B站请求失败: {format_request_error(e)}", details={"url": url})

        if binary:
            return response.content

        try:
            body = response.json()
        except ValueError as e:
            raise FetchError(f"B站响应解析失败: {format_request_error(e)}", details={"url": url})
        return check_response(body, url)

    async def get_binary(self, url: str) -> bytes:
        """获取任意二进制资源（封面等）"""
        return await self.fetch(url, binary=True)
