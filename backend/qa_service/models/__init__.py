# Import base classes
from qa_service.models.base import Base
from qa_service.models.mixins import TimestampMixin

from qa_service.models.test_run import TestRun, TestResultRecord, StressTestMetric
