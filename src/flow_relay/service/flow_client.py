"""Flow engine HTTP + SSE 클라이언트

Langflow run API를 호출하고, 스트리밍이 요청된 경우
엔진이 내려준 stream_url의 이벤트 스트림을 백그라운드에서 구독합니다.
"""

import asyncio
import json
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional
from urllib.parse import urljoin, urlsplit

import aiohttp

from flow_relay.constants import (
    DEFAULT_INPUT_TYPE,
    DEFAULT_OUTPUT_TYPE,
    HTTP_CONNECT_TIMEOUT,
    STREAM_CLOSED_REASON,
)
from flow_relay.engine.errors import (
    FlowExecutionError,
    FlowRelayError,
    RequestError,
    ResponseShapeError,
    StreamError,
    TransportError,
)
from flow_relay.engine.response import find_stream_url
from flow_relay.engine.types import (
    CloseCallback,
    ErrorCallback,
    RunParams,
    RunState,
    StreamEvent,
    StreamEventType,
    UpdateCallback,
)

logger = logging.getLogger(__name__)


# === 데이터 타입 ===

@dataclass
class ServerSentEvent:
    """파싱된 SSE 프레임 (data는 디코딩 전 문자열)"""
    event: str
    data: str


class StreamSubscription:
    """백그라운드 스트림 구독 핸들

    cancel()로 연결을 조기 종료할 수 있습니다.
    close 이벤트나 오류를 받으면 스스로 종료됩니다.
    """

    def __init__(self, url: str):
        self.url = url
        self.state = RunState.STREAMING
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> RunState:
        """구독이 끝날 때까지 대기하고 최종 상태를 반환"""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state

    async def cancel(self) -> None:
        """구독 종료 (이미 끝났으면 아무것도 하지 않음)"""
        if self._task is None or self._task.done():
            return
        self.state = RunState.CANCELLED
        self._task.cancel()
        await asyncio.wait({self._task})
        logger.info(f"Stream cancelled: {self.url}")

    def __repr__(self) -> str:
        return f"StreamSubscription(url={self.url!r}, state={self.state.value})"


@dataclass
class FlowRun:
    """run_flow 결과

    response: 엔진의 초기 응답 (RunResponse)
    subscription: 스트리밍 중이면 구독 핸들, 아니면 None
    """
    flow_id: str
    stream: bool
    response: Optional[dict] = None
    subscription: Optional[StreamSubscription] = None
    run_state: RunState = RunState.IDLE

    @property
    def state(self) -> RunState:
        if self.subscription is not None:
            return self.subscription.state
        return self.run_state


# === 클라이언트 ===

class FlowClient:
    """Langflow HTTP + SSE 클라이언트

    사용 예:
        async with FlowClient(base_url="https://api.langflow.astra.datastax.com", token="xxx") as client:
            run = await client.run_flow(flow_id, langflow_id, "hello")
            print(run.response)
    """

    def __init__(self, base_url: str, token: str = "", request_timeout: float = 0.0):
        """
        Args:
            base_url: flow engine 기본 URL
            token: Bearer 인증 토큰 (application token)
            request_timeout: 초기 run 요청의 전체 타임아웃 (초, 0이면 없음)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.request_timeout = request_timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._subscriptions: set[StreamSubscription] = set()

    @property
    def active_subscriptions(self) -> list[StreamSubscription]:
        return list(self._subscriptions)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                connect=HTTP_CONNECT_TIMEOUT,
                sock_read=None,  # 스트림은 오래 열려 있을 수 있음
                total=None,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _stream_headers(self, url: str) -> dict:
        """스트림 요청 헤더. 토큰은 base_url과 같은 origin일 때만 전송"""
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if self.token and _same_origin(url, self.base_url):
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def resolve_stream_url(self, stream_url: str) -> str:
        """상대 stream_url을 base_url 기준 절대 URL로 변환"""
        if urlsplit(stream_url).scheme in ("http", "https"):
            return stream_url
        return urljoin(f"{self.base_url}/", stream_url)

    async def close(self) -> None:
        """진행 중인 구독을 취소하고 HTTP 세션을 닫음"""
        for subscription in list(self._subscriptions):
            await subscription.cancel()
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "FlowClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # === Run API ===

    async def initiate_run(
        self,
        flow_id: str,
        langflow_id: str,
        input_value: str,
        input_type: str = DEFAULT_INPUT_TYPE,
        output_type: str = DEFAULT_OUTPUT_TYPE,
        stream: bool = False,
        tweaks: Optional[dict] = None,
    ) -> dict:
        """flow run 요청 (단일 시도, 재시도 없음)

        Raises:
            RequestError: 2xx가 아닌 응답
            TransportError: 네트워크 오류 또는 타임아웃
            ResponseShapeError: 성공 응답이 JSON 객체가 아님
        """
        params = RunParams(
            input_value=input_value,
            input_type=input_type,
            output_type=output_type,
            stream=stream,
            tweaks=tweaks or {},
        )
        endpoint = f"/lf/{langflow_id}/api/v1/run/{flow_id}"
        return await self._post(
            endpoint,
            params.to_body(),
            query={"stream": "true" if params.stream else "false"},
        )

    async def run_flow(
        self,
        flow_id: str,
        langflow_id: str,
        input_value: str,
        input_type: str = DEFAULT_INPUT_TYPE,
        output_type: str = DEFAULT_OUTPUT_TYPE,
        tweaks: Optional[dict] = None,
        stream: bool = False,
        on_update: Optional[UpdateCallback] = None,
        on_close: Optional[CloseCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> FlowRun:
        """flow 실행

        initiate_run 후, 스트리밍이 요청되었고 응답에 stream_url이 있으면
        백그라운드 구독을 시작합니다. 스트림은 기다리지 않고 바로 반환합니다.

        Raises:
            FlowExecutionError: initiate_run 실패 (원인 예외를 cause로 보존)
        """
        run = FlowRun(flow_id=flow_id, stream=stream)
        run.run_state = RunState.REQUESTING
        try:
            run.response = await self.initiate_run(
                flow_id, langflow_id, input_value, input_type, output_type, stream, tweaks
            )
        except FlowRelayError as e:
            run.run_state = RunState.FAILED
            logger.error(f"Error running flow: {e}")
            raise FlowExecutionError("Error initiating session", e) from e

        run.run_state = RunState.COMPLETED
        logger.debug(f"Init Response: {run.response}")

        if run.stream:
            stream_url = find_stream_url(run.response)
            if stream_url:
                logger.info(f"Streaming from: {stream_url}")
                run.subscription = self.subscribe_stream(stream_url, on_update, on_close, on_error)
            else:
                logger.warning(f"Stream requested but no stream_url in response (flow={run.flow_id})")

        return run

    # === Stream API ===

    def subscribe_stream(
        self,
        stream_url: str,
        on_update: Optional[UpdateCallback] = None,
        on_close: Optional[CloseCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> StreamSubscription:
        """이벤트 스트림을 백그라운드 태스크로 구독

        실행 중인 이벤트 루프 안에서 호출해야 합니다.
        """
        subscription = StreamSubscription(stream_url)
        self._subscriptions.add(subscription)
        task = asyncio.create_task(
            self._consume_stream(subscription, on_update, on_close, on_error),
            name=f"flow-stream:{stream_url}",
        )
        task.add_done_callback(lambda _: self._subscriptions.discard(subscription))
        subscription._task = task
        return subscription

    async def iter_stream(self, stream_url: str) -> AsyncIterator[StreamEvent]:
        """이벤트 스트림을 StreamEvent 시퀀스로 변환

        UPDATE를 0개 이상 내보낸 뒤 CLOSE 또는 ERROR 하나로 끝납니다.
        재시작할 수 없습니다.
        """
        url = self.resolve_stream_url(stream_url)
        session = await self._get_session()

        try:
            async with session.get(url, headers=self._stream_headers(url)) as response:
                if not 200 <= response.status < 300:
                    body = await _read_body(response)
                    yield _stream_error(
                        f"Stream request failed: {response.status} {response.reason or ''}".rstrip(),
                        {"status": response.status, "body": body},
                    )
                    return

                async for sse in self._parse_sse_stream(response):
                    if sse.event == "close":
                        yield StreamEvent(StreamEventType.CLOSE, reason=STREAM_CLOSED_REASON)
                        return
                    if sse.event != "message":
                        logger.debug(f"[SSE] ignoring '{sse.event}' event")
                        continue

                    try:
                        payload = json.loads(sse.data)
                    except json.JSONDecodeError as e:
                        yield _stream_error(f"Invalid stream payload: {e}", {"data": sse.data})
                        return
                    yield StreamEvent(StreamEventType.UPDATE, data=payload)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            yield _stream_error(f"Stream connection failed: {e}")
            return

        yield _stream_error("Stream ended without close event")

    async def _consume_stream(
        self,
        subscription: StreamSubscription,
        on_update: Optional[UpdateCallback],
        on_close: Optional[CloseCallback],
        on_error: Optional[ErrorCallback],
    ) -> None:
        """StreamEvent를 콜백으로 전달"""
        try:
            async with aclosing(self.iter_stream(subscription.url)) as events:
                async for event in events:
                    if event.type is StreamEventType.UPDATE:
                        if on_update:
                            await on_update(event.data)

                    elif event.type is StreamEventType.CLOSE:
                        subscription.state = RunState.CLOSED
                        if on_close:
                            await on_close(event.reason)

                    elif event.type is StreamEventType.ERROR:
                        subscription.state = RunState.STREAM_FAILED
                        logger.debug(f"[SSE] stream failed ({subscription.url}): {event.error}")
                        if on_error:
                            await on_error(event.error)

        except asyncio.CancelledError:
            subscription.state = RunState.CANCELLED
            raise
        except Exception as e:
            subscription.state = RunState.STREAM_FAILED
            logger.exception(f"Stream callback failed ({subscription.url}): {e}")

    # === 헬퍼 메서드 ===

    async def _post(self, endpoint: str, body: dict, query: Optional[dict] = None) -> dict:
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"

        kwargs: dict = {"json": body, "params": query, "headers": self._build_headers()}
        if self.request_timeout:
            kwargs["timeout"] = aiohttp.ClientTimeout(
                total=self.request_timeout, connect=HTTP_CONNECT_TIMEOUT
            )

        try:
            async with session.post(url, **kwargs) as response:
                payload = await _read_body(response)
                if not 200 <= response.status < 300:
                    raise RequestError(response.status, response.reason or "", payload)
                if not isinstance(payload, dict):
                    raise ResponseShapeError("$", "Flow engine returned a non-JSON-object body")
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Request Error: {e!r}")
            raise TransportError(f"Flow engine unreachable: {e!r}") from e
        except FlowRelayError as e:
            logger.error(f"Request Error: {e}")
            raise

    async def _parse_sse_stream(
        self,
        response: aiohttp.ClientResponse,
    ) -> AsyncIterator[ServerSentEvent]:
        """SSE 스트림 파싱

        네트워크 오류는 잡지 않고 iter_stream()으로 전파합니다.
        """
        current_event = "message"
        current_data: list[str] = []

        while True:
            line_bytes = await response.content.readline()

            if not line_bytes:
                logger.debug("[SSE] 스트림 종료")
                break

            line = line_bytes.decode("utf-8", errors="replace").rstrip("\r\n")

            if line.startswith("event:"):
                current_event = line[6:].strip() or "message"
            elif line.startswith("data:"):
                value = line[5:]
                current_data.append(value[1:] if value.startswith(" ") else value)
            elif line.startswith(":"):
                pass  # SSE comment (keepalive)
            elif line == "":
                if current_data or current_event != "message":
                    yield ServerSentEvent(event=current_event, data="\n".join(current_data))
                current_event = "message"
                current_data = []


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    """응답 바디를 JSON으로 파싱, 실패하면 텍스트 그대로 반환

    UTF-8이 아닌 바이트는 대체 문자로 디코딩합니다.
    """
    text = (await response.read()).decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _stream_error(message: str, details: Optional[dict] = None) -> StreamEvent:
    return StreamEvent(StreamEventType.ERROR, error=StreamError(message, details))


def _same_origin(url: str, other: str) -> bool:
    a, b = urlsplit(url), urlsplit(other)
    return (a.scheme, a.netloc) == (b.scheme, b.netloc)
