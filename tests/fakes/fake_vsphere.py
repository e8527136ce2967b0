# SPDX-License-Identifier: LGPL-3.0-or-later
"""Stand-ins for a vSphere session and for build steps."""
from vsbuild.core.exceptions import EndpointConnectionError
from vsbuild.steps.base import BuildStep


class FakeConnection:
    def __init__(self, endpoint):
        self.endpoint = endpoint
        self.name = endpoint.name
        self.disconnect_count = 0

    @property
    def is_connected(self):
        return self.disconnect_count == 0

    def disconnect(self):
        self.disconnect_count += 1


class FakeConnectionFactory:
    """Records every connection it hands out; can be told to fail."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.opened = []

    def __call__(self, endpoint):
        if self.fail_with is not None:
            raise self.fail_with
        conn = FakeConnection(endpoint)
        self.opened.append(conn)
        return conn


class RecordingStep(BuildStep):
    display_name = "Recording Step"

    def __init__(self, error=None):
        super().__init__()
        self.error = error
        self.calls = []

    def perform(self, ctx):
        # connection must still be open while the step runs
        self.calls.append((self.vsphere, self.vsphere.is_connected, ctx))
        if self.error is not None:
            raise self.error
