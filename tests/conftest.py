from unittest.mock import MagicMock

import pytest

from planets_admin.controllers import files
from planets_admin.storage import ObjectStorage


@pytest.fixture
def storage():
    """A mocked ObjectStorage installed for FilesController."""
    mock = MagicMock(spec=ObjectStorage)
    files.set_storage(mock)
    yield mock
    files.set_storage(None)
