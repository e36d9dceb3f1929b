"""Unit tests for the publish orchestrator.

The publishing client is an AsyncMock; bundling runs for real on tmp_path.
"""

import threading
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from central_publish.bundle.types import Artifact
from central_publish.client.errors import DeploymentFailedError, StatusCheckError, TransportError
from central_publish.bundle.assembler import assemble, stage_artifacts
from central_publish.client.publisher import PublishingClient
from central_publish.client.types import (
    DeploymentState,
    DeploymentStatus,
    HostCredential,
    PublishingType,
    create_publisher_config,
)
from central_publish.core.config import Settings
from central_publish.pipeline.orchestrator import (
    default_deployment_name,
    publish_artifacts,
    publish_from_settings,
    publish_repository,
)

DEPLOYMENT_ID = "dep-123"


@pytest.fixture
def repository(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    version_dir = root / "com/example/demo/1.0.0"
    version_dir.mkdir(parents=True)
    (version_dir / "demo-1.0.0.jar").write_bytes(b"jar")
    (version_dir / "demo-1.0.0.pom").write_text("<project/>")
    return root


@pytest.fixture
def config():
    return create_publisher_config("https://central.example.test/api/v1/")


def _client(*statuses) -> MagicMock:
    client = MagicMock()
    client.initialize = AsyncMock()
    client.upload = AsyncMock(return_value=DEPLOYMENT_ID)
    client.status = AsyncMock(side_effect=list(statuses))
    client.close = AsyncMock()
    return client


def _status(state: DeploymentState, **kwargs) -> DeploymentStatus:
    return DeploymentStatus(deployment_id=DEPLOYMENT_ID, deployment_state=state, **kwargs)


class TestPublishRepository:
    @pytest.mark.asyncio
    async def test_publishes_bundle(self, repository, tmp_path, config):
        client = _client(_status(DeploymentState.PENDING), _status(DeploymentState.PUBLISHED))

        outcome = await publish_repository(
            repository, tmp_path / "work", config,
            deployment_name="Deployment-test",
            publishing_type=PublishingType.AUTOMATIC,
            poll_interval=0.01,
            client=client,
        )

        assert outcome.deployment_id == DEPLOYMENT_ID
        assert outcome.is_published
        assert not outcome.skipped
        client.initialize.assert_awaited_once_with(config)
        client.close.assert_awaited_once()

        name, publishing_type, filename, _ = client.upload.call_args.args
        assert name == "Deployment-test"
        assert publishing_type is PublishingType.AUTOMATIC
        assert filename == "bundle.zip"
        assert (tmp_path / "work" / "bundle.zip").exists()

    @pytest.mark.asyncio
    async def test_upload_precedes_status(self, repository, tmp_path, config):
        calls: list[str] = []
        client = _client()
        client.upload.side_effect = lambda *a: calls.append("upload") or DEPLOYMENT_ID

        async def status(deployment_id):
            calls.append(f"status:{deployment_id}")
            return _status(DeploymentState.PUBLISHED)

        client.status = status

        await publish_repository(repository, tmp_path / "work", config, client=client)
        assert calls == ["upload", f"status:{DEPLOYMENT_ID}"]

    @pytest.mark.asyncio
    async def test_default_deployment_name(self, repository, tmp_path, config):
        client = _client(_status(DeploymentState.PUBLISHED))

        await publish_repository(repository, tmp_path / "work", config, client=client)

        name = client.upload.call_args.args[0]
        assert name.startswith("Deployment-")
        assert len(name) == len("Deployment-") + 14

    @pytest.mark.asyncio
    async def test_empty_repository_is_skipped_without_network(self, tmp_path, config):
        root = tmp_path / "empty"
        root.mkdir()
        client = _client()

        outcome = await publish_repository(root, tmp_path / "work", config, client=client)

        assert outcome.skipped
        assert outcome.deployment_id is None
        client.initialize.assert_not_called()
        client.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_deployment_raises_with_errors(self, repository, tmp_path, config):
        errors = {"pkg:maven/com.example/demo@1.0.0": ["Project name is missing"]}
        client = _client(_status(DeploymentState.FAILED, errors=errors))

        with pytest.raises(DeploymentFailedError) as exc_info:
            await publish_repository(repository, tmp_path / "work", config, client=client)

        assert exc_info.value.status.errors == errors
        assert "Project name is missing" in str(exc_info.value)
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upload_error_propagates_and_closes(self, repository, tmp_path, config):
        request = httpx.Request("POST", "https://central.example.test/api/v1/publisher/upload")
        client = _client()
        client.upload.side_effect = TransportError(httpx.Response(400, text="bad", request=request))

        with pytest.raises(TransportError):
            await publish_repository(repository, tmp_path / "work", config, client=client)

        client.close.assert_awaited_once()
        client.status.assert_not_called()

    @pytest.mark.asyncio
    async def test_fatal_status_propagates(self, repository, tmp_path, config):
        request = httpx.Request("GET", "https://central.example.test/api/v1/publisher/status")
        client = _client(TransportError(httpx.Response(403, request=request)))

        with pytest.raises(StatusCheckError):
            await publish_repository(
                repository, tmp_path / "work", config, client=client, poll_interval=0.01,
            )
        client.close.assert_awaited_once()


class TestPublishArtifacts:
    @pytest.mark.asyncio
    async def test_stages_release_artifacts_only(self, tmp_path, config):
        build = tmp_path / "build"
        build.mkdir()
        release = build / "demo-1.0.0.jar"
        release.write_bytes(b"jar")
        snapshot = build / "demo-1.1.0-SNAPSHOT.jar"
        snapshot.write_bytes(b"snap")
        client = _client(_status(DeploymentState.PUBLISHED))

        outcome = await publish_artifacts(
            [
                Artifact(path=release, repository_path="com/example/demo/1.0.0/demo-1.0.0.jar"),
                Artifact(path=snapshot, is_snapshot=True),
            ],
            tmp_path / "work",
            config,
            client=client,
        )

        assert outcome.is_published
        staging = tmp_path / "work" / "staging"
        assert (staging / "com/example/demo/1.0.0/demo-1.0.0.jar").exists()
        assert not (staging / "demo-1.1.0-SNAPSHOT.jar").exists()

    @pytest.mark.asyncio
    async def test_only_snapshots_is_skipped(self, tmp_path, config):
        snapshot = tmp_path / "demo-1.1.0-SNAPSHOT.jar"
        snapshot.write_bytes(b"snap")
        client = _client()

        outcome = await publish_artifacts(
            [Artifact(path=snapshot, is_snapshot=True)], tmp_path / "work", config, client=client,
        )

        assert outcome.skipped
        client.upload.assert_not_called()


def test_default_deployment_name_format():
    assert default_deployment_name(datetime(2025, 3, 4, 5, 6, 7)) == "Deployment-20250304050607"


class TestOffloadsFileWork:
    @pytest.mark.asyncio
    async def test_assemble_runs_off_the_event_loop(self, repository, tmp_path, config):
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def recording_assemble(*args):
            seen.append(threading.get_ident())
            return assemble(*args)

        client = _client(_status(DeploymentState.PUBLISHED))
        with patch("central_publish.pipeline.orchestrator.assemble", side_effect=recording_assemble):
            await publish_repository(repository, tmp_path / "work", config, client=client)

        assert len(seen) == 1
        assert seen[0] != loop_thread

    @pytest.mark.asyncio
    async def test_staging_runs_off_the_event_loop(self, tmp_path, config):
        jar = tmp_path / "demo-1.0.0.jar"
        jar.write_bytes(b"jar")
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def recording_stage(*args):
            seen.append(threading.get_ident())
            return stage_artifacts(*args)

        client = _client(_status(DeploymentState.PUBLISHED))
        with patch("central_publish.pipeline.orchestrator.stage_artifacts", side_effect=recording_stage):
            await publish_artifacts([Artifact(path=jar)], tmp_path / "work", config, client=client)

        assert len(seen) == 1
        assert seen[0] != loop_thread


class TestPublishFromSettings:
    @pytest.fixture
    def settings(self) -> Settings:
        return Settings(
            _env_file=None,
            url="https://central.example.test/api/v1",
            token="tok-123",
            deployment_name="Release-7",
            publishing_type=PublishingType.AUTOMATIC,
            poll_interval_seconds=0.25,
            debug=True,
        )

    @pytest.mark.asyncio
    async def test_settings_reach_upload_query(self, repository, tmp_path, settings):
        base = "https://central.example.test/api/v1/"
        upload_response = httpx.Response(
            201, text=DEPLOYMENT_ID, request=httpx.Request("POST", base),
        )
        status_response = httpx.Response(
            200,
            json={"deploymentId": DEPLOYMENT_ID, "deploymentState": "PUBLISHED"},
            request=httpx.Request("GET", base),
        )

        with patch("central_publish.client.publisher.httpx.AsyncClient") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.request = AsyncMock(side_effect=[upload_response, status_response])
            mock_client.aclose = AsyncMock()
            mock_client_cls.return_value = mock_client

            outcome = await publish_from_settings(
                repository, tmp_path / "work", settings, client=PublishingClient(),
            )

        assert outcome.is_published
        method, url = mock_client.request.call_args_list[0].args
        assert method == "POST"
        assert url == base + "publisher/upload?name=Release-7&publishingType=AUTOMATIC"
        headers = mock_client.request.call_args_list[0].kwargs["headers"]
        assert headers == {"Authorization": "Bearer tok-123"}

    @pytest.mark.asyncio
    async def test_settings_reach_poll_interval_and_logging(self, repository, tmp_path, settings):
        client = _client()
        poll = AsyncMock(return_value=_status(DeploymentState.PUBLISHED))

        with patch("central_publish.pipeline.orchestrator.poll_until_terminal", poll), \
                patch("central_publish.pipeline.orchestrator.configure_structlog") as configure:
            await publish_from_settings(repository, tmp_path / "work", settings, client=client)

        assert poll.call_args.kwargs["interval"] == 0.25
        configure.assert_called_once_with(debug=True)

    @pytest.mark.asyncio
    async def test_host_credential_used_without_configured_credentials(self, repository, tmp_path):
        settings = Settings(_env_file=None, token=None, username=None, password=None)
        client = _client(_status(DeploymentState.PUBLISHED))

        await publish_from_settings(
            repository, tmp_path / "work", settings,
            host_credential=HostCredential("host", "pw"),
            client=client,
        )

        config = client.initialize.call_args.args[0]
        assert config.authentication.headers["Authorization"].startswith("Bearer ")
        assert config.uri == settings.url

    @pytest.mark.asyncio
    async def test_loads_settings_from_environment(self, repository, tmp_path, monkeypatch):
        monkeypatch.setenv("CENTRAL_DEPLOYMENT_NAME", "From-Env")
        monkeypatch.setenv("CENTRAL_POLL_INTERVAL_SECONDS", "0.01")
        client = _client(_status(DeploymentState.PUBLISHED))

        await publish_from_settings(repository, tmp_path / "work", client=client)

        assert client.upload.call_args.args[0] == "From-Env"
