"""上游事件流客户端"""

from typing import Dict, Any, Optional, AsyncGenerator

import httpx

from src.core.errors import UpstreamError


class UpstreamClient:
    """
    上游客户端

    只负责把请求体原样POST到上游并把响应体按文本块吐出，
    不做鉴权和重试。
    """

    def __init__(
        self,
        url: str,
        timeout: float = 120.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=30.0, read=timeout, write=30.0, pool=10.0),
            headers=headers or {},
            transport=transport
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> Optional["UpstreamClient"]:
        upstream = config.get("upstream") or {}
        url = upstream.get("url")
        if not url:
            return None
        return cls(url, timeout=float(upstream.get("timeout", 120.0)), headers=upstream.get("headers"))

    async def open_stream(self, payload: Dict[str, Any]) -> httpx.Response:
        """发起请求并校验状态码，返回尚未读取的流式响应"""
        request = self.client.build_request(
            "POST",
            self.url,
            json=payload,
            headers={"Accept": "text/event-stream"}
        )
        response = await self.client.send(request, stream=True)

        if response.status_code >= 400:
            body = await response.aread()
            await response.aclose()
            message = body.decode("utf-8", errors="replace").strip()
            raise UpstreamError(message or f"上游返回状态码 {response.status_code}")

        return response

    async def iter_text(self, response: httpx.Response) -> AsyncGenerator[str, None]:
        """读取响应文本块，结束或中断时关闭响应"""
        received = False
        try:
            async for chunk in response.aiter_text():
                if chunk:
                    received = True
                    yield chunk
        finally:
            await response.aclose()

        if not received:
            raise UpstreamError("上游响应体为空")

    async def stream_text(self, payload: Dict[str, Any]) -> AsyncGenerator[str, None]:
        response = await self.open_stream(payload)
        async for chunk in self.iter_text(response):
            yield chunk

    async def aclose(self):
        await self.client.aclose()
