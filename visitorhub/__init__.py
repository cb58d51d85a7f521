"""VisitorHub - 멀티 테넌트 방문자 관리 백엔드."""

__version__ = "0.1.0"
