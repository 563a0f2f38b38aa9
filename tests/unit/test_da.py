"""Unit tests for the assertion DA client."""

from __future__ import annotations

import json

import httpx
import pytest

from pcl.core.da import DaSubmissionClient, build_payload
from pcl.core.errors import (
    CredentialRejected,
    InvalidConstructorArgs,
    NotAuthenticated,
    SubmissionNetworkError,
    SubmissionRejected,
)
from pcl.models.assertions import AssertionKey
from pcl.models.config import PersistedConfig

SUBMIT_PATH = "/assertions"


@pytest.fixture
def client(store, settings, service) -> DaSubmissionClient:
    return DaSubmissionClient.from_settings(store, settings, transport=service.transport)


class TestSubmit:
    def test_success_records_pending(self, client, service, store, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (201, {"artifact_id": "da-1", "signature": "0xsig"}))

        artifact_id = client.submit(config, "alpha", make_artifact(), [])

        assert artifact_id == "da-1"
        entry = config.find_pending("alpha", AssertionKey.parse("OwnableAssertion"))
        assert entry is not None
        assert entry.signature == "0xsig"
        assert store.load().pending_for("alpha")[0].artifact_id == "da-1"

    def test_request_body_and_auth(self, client, service, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (200, {"artifact_id": "da-1"}))
        artifact = make_artifact(inputs=[{"type": "address"}, {"type": "uint256"}])

        client.submit(config, "alpha", artifact, ["0xabc", "42"])

        request = service.calls("POST", SUBMIT_PATH)[0]
        assert request.headers["Authorization"] == "Bearer test-token"
        body = json.loads(request.content)
        assert body == build_payload(artifact, ["0xabc", "42"])
        assert body["constructor_signature"] == "constructor(address,uint256)"
        assert body["compiler_version"] == "0.8.28"

    def test_resubmission_keeps_one_entry_with_latest_id(
        self, client, service, store, config, make_artifact
    ):
        service.add(
            "POST",
            SUBMIT_PATH,
            (200, {"artifact_id": "da-first"}),
            (200, {"artifact_id": "da-second"}),
        )
        artifact = make_artifact(inputs=[{"type": "uint256"}])

        client.submit(config, "alpha", artifact, ["1"])
        client.submit(config, "alpha", artifact, ["1"])

        entries = store.load().pending_for("alpha")
        assert len(entries) == 1
        assert entries[0].artifact_id == "da-second"

    def test_different_args_are_separate_entries(self, client, service, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (200, {"artifact_id": "a"}), (200, {"artifact_id": "b"}))
        artifact = make_artifact(inputs=[{"type": "uint256"}])
        client.submit(config, "alpha", artifact, ["1"])
        client.submit(config, "alpha", artifact, ["2"])
        assert [e.artifact_id for e in config.pending_for("alpha")] == ["a", "b"]


class TestSubmitGuards:
    def test_no_credential_sends_nothing(self, client, service, store, make_artifact):
        with pytest.raises(NotAuthenticated):
            client.submit(PersistedConfig(), "alpha", make_artifact(), [])
        assert service.requests == []
        assert not store.path.exists()

    def test_wrong_arg_count_sends_nothing(self, client, service, config, make_artifact):
        artifact = make_artifact(inputs=[{"type": "address"}])
        with pytest.raises(InvalidConstructorArgs) as excinfo:
            client.submit(config, "alpha", artifact, [])
        assert excinfo.value.expected == 1
        assert excinfo.value.given == 0
        assert "constructor(address)" in str(excinfo.value)
        assert service.requests == []


class TestSubmitFailures:
    def test_rejection_leaves_table_unchanged(self, client, service, store, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (422, {"error": "bytecode too large"}))
        with pytest.raises(SubmissionRejected) as excinfo:
            client.submit(config, "alpha", make_artifact(), [])
        assert "da:" in str(excinfo.value)
        assert "bytecode too large" in excinfo.value.detail
        assert config.pending == {}
        assert not store.path.exists()

    def test_missing_artifact_id_is_rejected(self, client, service, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (200, {"ok": True}))
        with pytest.raises(SubmissionRejected, match="artifact_id"):
            client.submit(config, "alpha", make_artifact(), [])
        assert config.pending == {}

    def test_non_json_body_is_rejected(self, client, service, config, make_artifact):
        service.add("POST", SUBMIT_PATH, (200, "<html>gateway</html>"))
        with pytest.raises(SubmissionRejected):
            client.submit(config, "alpha", make_artifact(), [])

    def test_transport_failure(self, client, service, config, make_artifact):
        service.add("POST", SUBMIT_PATH, httpx.ConnectTimeout("timed out"))
        with pytest.raises(SubmissionNetworkError, match="da:"):
            client.submit(config, "alpha", make_artifact(), [])
        assert config.pending == {}

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_rejection_clears_credential(
        self, client, service, store, config, make_artifact, status
    ):
        store.save(config)
        service.add("POST", SUBMIT_PATH, (status, {"error": "token revoked"}))
        with pytest.raises(CredentialRejected) as excinfo:
            client.submit(config, "alpha", make_artifact(), [])
        assert excinfo.value.hint == "pcl auth login"
        assert config.credential is None
        assert store.load().credential is None
