"""Root conftest: test environment overrides and structlog routed to stdlib so caplog sees every event."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import _context_processors

# Optional local overrides (HIDESEEK_*, LOG_LEVEL), never committed
load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        *_context_processors(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Keep game_id and connection_id bindings from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
