# SPDX-License-Identifier: LGPL-3.0-or-later
import os
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

os.environ.setdefault("PYTHONPATH", str(_REPO_ROOT))

from fakes.fake_vsphere import FakeConnectionFactory  # noqa: E402
from vsbuild.vsphere.console import TaskListener  # noqa: E402
from vsbuild.vsphere.endpoint import EndpointConfig  # noqa: E402
from vsbuild.vsphere.registry import EndpointRegistry  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no external services")
    config.addinivalue_line("markers", "integration: tests that wire several modules together")
    config.addinivalue_line("markers", "security: secret handling")


@pytest.fixture
def vc_east():
    return EndpointConfig(name="vc-east", host="vcenter-east.example.com", user="builder", password="pw-east")


@pytest.fixture
def vc_west():
    return EndpointConfig(name="vc-west", host="vcenter-west.example.com", user="builder", password="pw-west")


@pytest.fixture
def registry(vc_east, vc_west):
    return EndpointRegistry([vc_east, vc_west])


@pytest.fixture
def factory():
    return FakeConnectionFactory()


@pytest.fixture
def listener():
    import io

    return TaskListener(io.StringIO(), capture=True)
