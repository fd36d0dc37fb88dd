"""
테스트용 flow engine 스텁

aiohttp.web으로 run API와 이벤트 스트림 엔드포인트를 흉내냅니다.
"""

import asyncio
from typing import Any

from aiohttp import web
from aiohttp.test_utils import TestServer


def text_response(text: str) -> dict:
    return {"outputs": [{"outputs": [{"outputs": {"message": {"message": {"text": text}}}}]}]}


def stream_response(stream_url: str) -> dict:
    return {"outputs": [{"outputs": [{"artifacts": {"stream_url": stream_url}}]}]}


def sse(data: str, event: str | None = None) -> str:
    frame = f"event: {event}\n" if event else ""
    return frame + f"data: {data}\n\n"


STREAM_PATH = "/api/v1/build/job-1/events"


class StubEngine:
    """run 요청 기록 + 스크립트된 응답/스트림"""

    def __init__(self):
        self.base_url = ""
        self.run_requests: list[dict] = []
        self.run_status = 200
        self.run_body: Any = text_response("hi there")
        self.run_delay = 0.0
        self.stream_status = 200
        self.stream_error_body: Any = {"detail": "job not found"}
        self.stream_frames: list[str] = []
        self.stream_requests: list[dict] = []
        self.hold_stream = False
        self.release = asyncio.Event()

    async def handle_run(self, request: web.Request) -> web.StreamResponse:
        self.run_requests.append({
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "json": await request.json(),
        })
        if self.run_delay:
            await asyncio.sleep(self.run_delay)
        if isinstance(self.run_body, bytes):
            return web.Response(status=self.run_status, body=self.run_body)
        if isinstance(self.run_body, str):
            return web.Response(status=self.run_status, text=self.run_body)
        return web.json_response(self.run_body, status=self.run_status)

    async def handle_stream(self, request: web.Request) -> web.StreamResponse:
        self.stream_requests.append({"path": request.path, "headers": dict(request.headers)})
        if self.stream_status != 200:
            if isinstance(self.stream_error_body, bytes):
                return web.Response(status=self.stream_status, body=self.stream_error_body)
            return web.json_response(self.stream_error_body, status=self.stream_status)

        response = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await response.prepare(request)
        for frame in self.stream_frames:
            await response.write(frame.encode("utf-8"))
        if self.hold_stream:
            try:
                await asyncio.wait_for(self.release.wait(), timeout=5)
            except asyncio.TimeoutError:
                pass
        return response

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/lf/{langflow_id}/api/v1/run/{flow_id}", self.handle_run)
        app.router.add_get("/api/v1/build/{job_id}/events", self.handle_stream)
        return app


async def start_engine() -> tuple[StubEngine, TestServer]:
    engine = StubEngine()
    server = TestServer(engine.make_app())
    await server.start_server()
    engine.base_url = f"http://{server.host}:{server.port}"
    return engine, server
