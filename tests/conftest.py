import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'adminstack' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from adminstack.core.logging_config import reset_logging_for_tests
from helpers.project import FakeProject


@pytest.fixture(autouse=True)
def _clean_adminstack_env(monkeypatch):
    """Developer shells must not leak ADMINSTACK_* overrides into config loads."""
    for key in list(os.environ):
        if key.startswith("ADMINSTACK_"):
            monkeypatch.delenv(key, raising=False)
    yield
    reset_logging_for_tests()


@pytest.fixture
def project(tmp_path: Path) -> FakeProject:
    """A project with the base admin package installed and no plugins."""
    proj = FakeProject(tmp_path / "project")
    proj.install_base()
    return proj
