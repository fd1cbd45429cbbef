"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import pytest
import structlog

from client.observability import DefaultClientProbe
from identity.application.observability import (
    DefaultSessionServiceProbe,
    DefaultTokenServiceProbe,
)
from infrastructure.observability import (
    DefaultConnectionProbe,
    DefaultStartupProbe,
    ObservationContext,
)
from realtime.application.observability import DefaultHubProbe


@pytest.fixture
def mock_logger():
    return MagicMock(spec=structlog.stdlib.BoundLogger)


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_engine_created_logs_info(self, mock_logger):
        """engine_created should log host, database and pool size."""
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_created(host="localhost", database="tearoom", pool_size=10)

        mock_logger.info.assert_called_once_with(
            "database_engine_created",
            host="localhost",
            database="tearoom",
            pool_size=10,
        )

    def test_engine_disposed_logs_info(self, mock_logger):
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_disposed()

        mock_logger.info.assert_called_once_with("database_engine_disposed")


class TestStartupProbe:
    """Tests for the application lifecycle probe."""

    def test_signing_key_missing_logs_error(self, mock_logger):
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.signing_key_missing()

        mock_logger.error.assert_called_once_with(
            "access_token_signing_key_missing", hint="Set TEAROOM_AUTH_SECRET_KEY"
        )

    def test_application_stopping(self, mock_logger):
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_stopping(open_connections=3)

        mock_logger.info.assert_called_once_with(
            "application_stopping", open_connections=3
        )


class TestObservationContext:
    """Context metadata is attached to every event of a bound probe."""

    def test_as_dict_skips_missing_values(self):
        context = ObservationContext(request_id="req-1", extra={"route": "/x"})

        assert context.as_dict() == {"request_id": "req-1", "route": "/x"}

    def test_with_connection(self):
        context = ObservationContext(tenant_id="t1").with_connection("c1")

        assert context.as_dict() == {"tenant_id": "t1", "connection_id": "c1"}

    def test_bound_probe_includes_context(self, mock_logger):
        context = ObservationContext(request_id="req-1", principal_id="p1")
        probe = DefaultSessionServiceProbe(logger=mock_logger).with_context(context)

        probe.refresh_failed(reason="revoked")

        mock_logger.info.assert_called_once_with(
            "session_refresh_failed",
            reason="revoked",
            request_id="req-1",
            principal_id="p1",
        )

    def test_with_context_returns_new_probe(self, mock_logger):
        probe = DefaultHubProbe(logger=mock_logger)

        bound = probe.with_context(ObservationContext(connection_id="c1"))

        assert bound is not probe
        assert probe._context is None


class TestSecurityEvents:
    """Security-relevant events are logged as warnings."""

    def test_reuse_detected(self, mock_logger):
        probe = DefaultSessionServiceProbe(logger=mock_logger)

        probe.refresh_token_reuse_detected(
            principal_id="p1", lineage_id="l1", revoked_count=1
        )

        mock_logger.warning.assert_called_once_with(
            "refresh_token_reuse_detected",
            security_event=True,
            principal_id="p1",
            lineage_id="l1",
            revoked_count=1,
        )

    def test_channel_join_denied(self, mock_logger):
        probe = DefaultHubProbe(logger=mock_logger)

        probe.channel_join_denied("c1", "t1/kitchen:K2", "own kitchen only")

        mock_logger.warning.assert_called_once_with(
            "realtime_channel_join_denied",
            connection_id="c1",
            channel="t1/kitchen:K2",
            reason="own kitchen only",
        )

    def test_rotation_race_lost(self, mock_logger):
        probe = DefaultTokenServiceProbe(logger=mock_logger)

        probe.rotation_race_lost(principal_id="p1", lineage_id="l1")

        assert mock_logger.method_calls[0].args[0] == (
            "refresh_token_rotation_race_lost"
        )


class TestClientProbe:
    """Tests for the SDK probe."""

    def test_state_change(self, mock_logger):
        probe = DefaultClientProbe(logger=mock_logger)

        probe.realtime_state_changed(previous="open", current="reconnecting")

        mock_logger.info.assert_called_once_with(
            "client_realtime_state_changed", previous="open", current="reconnecting"
        )

    def test_session_expired_is_warning(self, mock_logger):
        probe = DefaultClientProbe(logger=mock_logger)

        probe.session_expired(status_code=401)

        mock_logger.warning.assert_called_once_with(
            "client_session_expired", status_code=401
        )
