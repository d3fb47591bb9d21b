import os
from typing import Any

import pytest

from wu.wu_operators import OperatorTable

# Start coverage in subprocesses spawned by the CLI tests
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Collector teardown asserts in some CI containers
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture  # type: ignore[misc]
def operators() -> OperatorTable:
    return OperatorTable.from_defaults()
