"""
Flow Relay - 공통 상수 정의

여러 모듈에서 사용하는 상수를 한 곳에 정의합니다.
"""

# 기본 tweaks (컴포넌트 ID → 오버라이드 객체). FLOW_TWEAKS 환경변수로 교체 가능.
DEFAULT_TWEAKS = {
    "ChatInput-Zvqp4": {},
    "ParseData-bmuuF": {},
    "Prompt-nPeug": {},
    "SplitText-QgyJr": {},
    "OpenAIModel-H9u2C": {},
    "ChatOutput-HjX13": {},
    "AstraDB-kFYYv": {},
    "OpenAIEmbeddings-QvVOu": {},
    "AstraDB-LBn47": {},
    "OpenAIEmbeddings-2gAbb": {},
    "File-7y9jj": {},
}

DEFAULT_INPUT_TYPE = "chat"
DEFAULT_OUTPUT_TYPE = "chat"

# 스트림 요청 시 즉시 반환하는 확인 메시지
STREAM_IN_PROGRESS_MESSAGE = "Stream in progress"

# close 이벤트 수신 시 on_close에 전달하는 사유
STREAM_CLOSED_REASON = "Stream closed"

# HTTP 연결 타임아웃 (초)
HTTP_CONNECT_TIMEOUT = 10
