"""
공통 테스트 설정

flow_relay.main은 import 시점에 설정을 검증하므로
필수 환경변수를 먼저 채워 둡니다.
"""

import os

os.environ.setdefault("BASE_URL", "http://flow-engine.test")
os.environ.setdefault("APPLICATION_TOKEN", "test-token")
os.environ.setdefault("FLOW_ID", "flow-123")
os.environ.setdefault("LANGFLOW_ID", "lf-456")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FORMAT", "text")
