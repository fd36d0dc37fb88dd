"""RunResponse 경로 접근자

flow engine 응답은 깊게 중첩된 구조입니다.
    텍스트:     outputs[0].outputs[0].outputs.message.message.text
    스트림 URL: outputs[0].outputs[0].artifacts.stream_url
경로가 없으면 ResponseShapeError로 명시적으로 실패합니다.
"""

from typing import Any, Optional, Sequence, Union

from flow_relay.engine.errors import ResponseShapeError

PathStep = Union[str, int]

TEXT_PATH: tuple = ("outputs", 0, "outputs", 0, "outputs", "message", "message", "text")
STREAM_URL_PATH: tuple = ("outputs", 0, "outputs", 0, "artifacts", "stream_url")

_MISSING = object()


def format_path(path: Sequence[PathStep]) -> str:
    """("outputs", 0, "text") → "outputs[0].text" """
    rendered = ""
    for step in path:
        if isinstance(step, int):
            rendered += f"[{step}]"
        else:
            rendered += f".{step}" if rendered else step
    return rendered


def _walk(data: Any, path: Sequence[PathStep]) -> tuple[Any, int]:
    """경로를 따라 내려가며 (값, 도달한 단계 수)를 반환. 실패 시 값은 _MISSING"""
    current = data
    for depth, step in enumerate(path):
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return _MISSING, depth
            current = current[step]
        else:
            if not isinstance(current, dict) or step not in current:
                return _MISSING, depth
            current = current[step]
    return current, len(path)


def get_path(data: Any, path: Sequence[PathStep]) -> Any:
    """경로의 값을 반환. 없거나 None이면 ResponseShapeError"""
    value, depth = _walk(data, path)
    if value is _MISSING or value is None:
        missing = format_path(path[: depth + 1]) if depth < len(path) else format_path(path)
        raise ResponseShapeError(format_path(path), f"Unexpected flow response shape: missing {missing}")
    return value


def find_path(data: Any, path: Sequence[PathStep]) -> Optional[Any]:
    """경로의 값을 반환. 없으면 None"""
    value, _ = _walk(data, path)
    return None if value is _MISSING else value


def extract_output_text(response: Any) -> str:
    """비스트림 응답에서 최종 텍스트 추출"""
    text = get_path(response, TEXT_PATH)
    if not isinstance(text, str):
        raise ResponseShapeError(
            format_path(TEXT_PATH),
            f"Unexpected flow response shape: {format_path(TEXT_PATH)} is not a string",
        )
    return text


def find_stream_url(response: Any) -> Optional[str]:
    """스트림 응답에서 stream_url 조회. 없으면 None"""
    url = find_path(response, STREAM_URL_PATH)
    if isinstance(url, str) and url:
        return url
    return None
