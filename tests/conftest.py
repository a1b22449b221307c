import logging
import sys

import pytest

from src.core import coding_client as client_module
from src.core.config import settings

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

TEST_BASE_URL = "https://coding.test/open-api"
TEST_TOKEN = "test-token-123456"


@pytest.fixture(autouse=True)
def coding_settings(monkeypatch):
    """为每个测试提供固定的后端配置，并重置客户端单例"""
    monkeypatch.setattr(settings, "API_BASE_URL", TEST_BASE_URL)
    monkeypatch.setattr(settings, "API_TOKEN", TEST_TOKEN)
    monkeypatch.setattr(settings, "FANOUT_CONCURRENCY", 1)
    client_module._coding_client = None
    yield settings
    client_module._coding_client = None


@pytest.fixture(autouse=True)
def log_test_start(request):
    """Log test start and end for each test."""
    logger.info("=" * 80)
    logger.info("Starting test: %s", request.node.name)
    yield
    logger.info("Completed test: %s", request.node.name)
