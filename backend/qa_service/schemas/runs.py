from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class TestResultRecordResponse(BaseModel):
    __test__ = False
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int
    test_suite: str
    test_name: str
    status: str
    duration_ms: int
    error_message: Optional[str]
    browser: Optional[str]


class TestRunResponse(BaseModel):
    __test__ = False
    model_config = ConfigDict(from_attributes=True)

    id: str
    run_name: str
    total_tests: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    duration_ms: int
    environment: str
    created_at: Optional[datetime]


class TestRunDetailResponse(TestRunResponse):
    results: List[TestResultRecordResponse]


class TestRunListResponse(BaseModel):
    __test__ = False

    runs: List[TestRunResponse]
    total: int
