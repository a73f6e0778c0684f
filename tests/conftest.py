import os as _os
import sys

import pytest

# Ensure project root is importable (so `import lucky` works without installing the package)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from lucky.runtime import ServiceLifecycle  # noqa: E402
from lucky.settings import BackendSettings  # noqa: E402


@pytest.fixture
def fast_backend_settings():
    """Backend settings with delays small enough for unit tests."""
    return BackendSettings(startup_delay_s=0, processing_delay_s=0.05, delay_mode="nonblocking")


@pytest.fixture
def ready_lifecycle():
    lc = ServiceLifecycle()
    lc.mark_ready()
    return lc
