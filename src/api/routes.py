"""FastAPI路由模块"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Any, List, Optional, AsyncIterator

import httpx
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from src.core import load_config
from src.core.errors import PatchError, UpstreamError
from src.document import build_document
from src.stream import SSEFormatter, StreamProcessor, decode_event_stream, get_stream_processor
from .upstream_client import UpstreamClient

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # 禁用 nginx 缓冲
}


async def _iter_body(body: bytes) -> AsyncIterator[bytes]:
    yield body


class BuildRequest(BaseModel):
    """一次性构建文档的请求体"""
    patches: List[Dict[str, Any]]


async def stream_derived_events(
    events: AsyncIterator[Dict[str, Any]],
    processor: StreamProcessor,
    formatter: Optional[SSEFormatter] = None
) -> AsyncIterator[str]:
    """驱动处理器并把派生事件格式化为SSE，异常转为最后一个 error 事件"""
    formatter = formatter or SSEFormatter()
    try:
        async for derived in processor.process_stream(events):
            yield formatter.format_sse_event(derived)
    except PatchError as e:
        print(f"❌ patch应用失败，终止流: {e.message}")
        yield formatter.create_error_event(e)
    except (UpstreamError, httpx.HTTPError) as e:
        print(f"❌ 上游流异常: {e}")
        yield formatter.create_error_event(e)
    except asyncio.CancelledError:
        print("⚠️ 响应已取消")
        raise
    yield formatter.DONE_EVENT


def create_app(config: Optional[Dict[str, Any]] = None, upstream: Optional[UpstreamClient] = None) -> FastAPI:
    """创建FastAPI应用"""
    config = config or load_config()
    if upstream is None:
        upstream = UpstreamClient.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if upstream is not None:
            await upstream.aclose()

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("cors_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def new_processor() -> StreamProcessor:
        return get_stream_processor(
            on_invalid_patch=config.get("on_invalid_patch", "skip"),
            debug=bool(config.get("debug", False))
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "upstream": upstream is not None}

    @app.post("/v1/stream")
    async def stream(request: Request):
        """请求体为外层事件流（SSE 或 NDJSON），响应为派生事件SSE"""
        # 响应开始后 StreamingResponse 会监听断开并占用 receive，请求体须先读完
        body = await request.body()
        events = decode_event_stream(_iter_body(body))
        return StreamingResponse(
            stream_derived_events(events, new_processor()),
            media_type="text/event-stream",
            headers=SSE_HEADERS
        )

    @app.post("/v1/build")
    async def build(body: BuildRequest):
        """一次性折叠一组patch"""
        try:
            document = build_document(body.patches)
        except PatchError as e:
            raise HTTPException(status_code=422, detail=e.to_dict())
        return document.to_dict()

    @app.post("/v1/relay")
    async def relay(request: Request):
        """把请求体转发到上游，并处理上游返回的事件流"""
        if upstream is None:
            raise HTTPException(status_code=503, detail={"error": "未配置上游地址"})

        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail={"error": "请求体必须是JSON"})

        try:
            response = await upstream.open_stream(payload)
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail={"error": str(e)})
        except httpx.HTTPError as e:
            print(f"⚠️ 连接上游失败: {e}")
            raise HTTPException(status_code=502, detail={"error": f"连接上游失败: {e}"})

        events = decode_event_stream(upstream.iter_text(response))
        return StreamingResponse(
            stream_derived_events(events, new_processor()),
            media_type="text/event-stream",
            headers=SSE_HEADERS
        )

    return app
