import pytest
from unittest.mock import MagicMock

from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.workspace import Workspace


@pytest.fixture
def mock_rich_logger():
    """Provides a fully-mocked RichAppLogger instance for dependency injection."""
    mock_logger = MagicMock(spec=RichAppLogger)

    # execution_step must behave as a context manager that does not swallow exceptions
    mock_context_manager = MagicMock()
    mock_context_manager.__enter__.return_value = None
    mock_context_manager.__exit__.return_value = None
    mock_logger.execution_step.return_value = mock_context_manager

    return mock_logger


@pytest.fixture
def workspace(tmp_path):
    """An empty workspace directory."""
    root = tmp_path / "rootfs"
    root.mkdir()
    return Workspace(root)
