"""Test configuration and fixtures."""

import pytest

from spotintel.utils import set_log_function, set_verbose


@pytest.fixture(autouse=True)
def quiet_logs():
    """Capture log lines instead of printing them."""
    lines = []
    set_log_function(lines.append)
    yield lines
    set_log_function(None)
    set_verbose(False)
