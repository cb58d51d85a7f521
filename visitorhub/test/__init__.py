"""Test 헬퍼를 제공하는 패키지."""
