"""Tests for the cluster CLI commands and the tscloud entry point."""

import json

import pytest
from tscloud.cli import cluster as cluster_cli
from tscloud.cli.main import build_parser, main
from tscloud.config.settings import Settings, get_settings
from tscloud.core.errors import (
    BlockedError,
    ConfigurationError,
    ConvergenceFailed,
    CreateFailed,
    ExitCode,
    ValidationError,
)
from tscloud.domain.models import ClusterConfig
from tscloud.logging import configure_logging
from tscloud.providers.typesense import TypesenseProvider
from tscloud.state import StateFile, load_state, save_state


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "tscloud.state.json"


@pytest.fixture
def provider(fake_api):
    return TypesenseProvider(client=fake_api, poll_interval=0)


@pytest.fixture
def config():
    return ClusterConfig(
        memory="0.5_gb",
        vcpu="2_vcpus_1_hr_burst_per_day",
        region="oregon",
        name="search-prod",
    )


def _seed_state(path, fake_api, **fields):
    from tscloud.domain.models import ClusterState

    record = fake_api.seed(**fields)
    state = StateFile()
    state.put(ClusterState.from_record(record))
    save_state(state, path)
    return record


class TestCreateCommand:
    def test_create_records_snapshot(self, fake_api, provider, config, state_path):
        fake_api.statuses = ["provisioning", "in_service"]

        result = cluster_cli.create_cluster_command(
            config, state_file=str(state_path), provider=provider
        )

        assert result == 0
        snapshot = load_state(state_path).get("clu-123")
        assert snapshot.status == "in_service"
        assert snapshot.region == "oregon"
        assert fake_api.count("get") == 2

    def test_json_output(self, fake_api, provider, config, state_path, capsys):
        cluster_cli.create_cluster_command(
            config, state_file=str(state_path), output_format="json", provider=provider
        )

        data = json.loads(capsys.readouterr().out)
        assert data["id"] == "clu-123"
        assert data["name"] == "search-prod"

    def test_convergence_failure_taints_cluster(
        self, fake_api, provider, config, state_path, api_error
    ):
        fake_api.get_error = api_error

        with pytest.raises(ConvergenceFailed):
            cluster_cli.create_cluster_command(config, state_file=str(state_path), provider=provider)

        state = load_state(state_path)
        assert state.tainted == {"clu-123"}
        assert state.get("clu-123") is None

    def test_create_failure_leaves_state_untouched(
        self, fake_api, provider, config, state_path, api_error
    ):
        fake_api.create_error = api_error

        with pytest.raises(CreateFailed):
            cluster_cli.create_cluster_command(config, state_file=str(state_path), provider=provider)

        assert not state_path.exists()


class TestReadCommand:
    def test_read_refreshes_state(self, fake_api, provider, state_path):
        _seed_state(state_path, fake_api)
        fake_api.records["clu-123"] = fake_api.records["clu-123"].model_copy(
            update={"typesense_server_version": "28.0"}
        )

        assert cluster_cli.read_cluster_command("clu-123", state_file=str(state_path), provider=provider) == 0
        assert load_state(state_path).get("clu-123").typesense_server_version == "28.0"

    def test_read_missing_cluster_drops_it_from_state(self, fake_api, provider, state_path):
        _seed_state(state_path, fake_api)
        del fake_api.records["clu-123"]

        result = cluster_cli.read_cluster_command("clu-123", state_file=str(state_path), provider=provider)

        assert result == 0
        assert load_state(state_path).get("clu-123") is None


class TestUpdateCommand:
    def test_update_from_state(self, fake_api, provider, state_path):
        _seed_state(state_path, fake_api)

        result = cluster_cli.update_cluster_command(
            "clu-123",
            name="renamed",
            auto_upgrade_capacity=True,
            state_file=str(state_path),
            provider=provider,
        )

        assert result == 0
        snapshot = load_state(state_path).get("clu-123")
        assert snapshot.name == "renamed"
        assert snapshot.auto_upgrade_capacity is True
        _, _, request = fake_api.calls[0]
        assert request.payload() == {"name": "renamed", "auto_upgrade_capacity": True}

    def test_update_unknown_cluster_needs_definition(self, provider, state_path):
        with pytest.raises(ConfigurationError):
            cluster_cli.update_cluster_command(
                "clu-404", name="x", state_file=str(state_path), provider=provider
            )

    def test_update_refuses_replace_only_change(self, fake_api, provider, state_path):
        _seed_state(state_path, fake_api)
        desired = ClusterConfig(memory="4_gb", vcpu="2_vcpus_1_hr_burst_per_day", region="oregon")

        with pytest.raises(ValidationError, match="memory"):
            cluster_cli.update_cluster_command(
                "clu-123", config=desired, state_file=str(state_path), provider=provider
            )

        assert fake_api.count("update") == 0


class TestDeleteCommand:
    def test_delete_removes_from_state(self, fake_api, provider, state_path):
        _seed_state(state_path, fake_api)

        result = cluster_cli.delete_cluster_command(
            "clu-123", assume_yes=True, state_file=str(state_path), provider=provider
        )

        assert result == 0
        assert load_state(state_path).get("clu-123") is None
        assert fake_api.count("terminate") == 1

    def test_delete_requires_confirmation(self, fake_api, provider, state_path, monkeypatch):
        monkeypatch.setattr(cluster_cli, "confirm", lambda message: False)

        with pytest.raises(BlockedError):
            cluster_cli.delete_cluster_command("clu-123", state_file=str(state_path), provider=provider)

        assert fake_api.count("terminate") == 0


class TestImportCommand:
    def test_import_adopts_cluster(self, fake_api, provider, state_path):
        fake_api.seed(id="existing-1", regions=["frankfurt"])

        result = cluster_cli.import_cluster_command(
            "existing-1", state_file=str(state_path), provider=provider
        )

        assert result == 0
        assert load_state(state_path).get("existing-1").region == "frankfurt"


class TestMain:
    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch):
        monkeypatch.setattr("tscloud.cli.main.configure_logging", lambda level: None)

    @pytest.fixture
    def patched_provider(self, monkeypatch, provider):
        monkeypatch.setattr(cluster_cli, "build_provider", lambda settings=None: provider)
        return provider

    def test_no_command_prints_help(self):
        assert main([]) == 1

    def test_cluster_without_subcommand(self):
        assert main(["cluster"]) == 1

    def test_parser_create_flags(self):
        args = build_parser().parse_args(
            ["cluster", "create", "--memory", "0.5_gb", "--no-auto-upgrade-capacity"]
        )
        assert args.memory == "0.5_gb"
        assert args.auto_upgrade_capacity is False

    def test_create_via_main(self, patched_provider, state_path):
        result = main(
            [
                "--state-file",
                str(state_path),
                "cluster",
                "create",
                "--memory",
                "0.5_gb",
                "--vcpu",
                "2_vcpus_1_hr_burst_per_day",
                "--region",
                "oregon",
            ]
        )

        assert result == 0
        assert load_state(state_path).get("clu-123").status == "in_service"

    def test_create_missing_required_flags(self, patched_provider, state_path):
        result = main(["--state-file", str(state_path), "cluster", "create", "--memory", "0.5_gb"])
        assert result == ExitCode.CONFIG_ERROR

    def test_create_convergence_failure_exit_code(self, patched_provider, fake_api, api_error, state_path):
        fake_api.get_error = api_error

        result = main(
            [
                "--state-file",
                str(state_path),
                "cluster",
                "create",
                "--memory",
                "0.5_gb",
                "--vcpu",
                "2_vcpus",
                "--region",
                "oregon",
            ]
        )

        assert result == ExitCode.PROVIDER_ERROR
        assert load_state(state_path).tainted == {"clu-123"}

    def test_delete_without_yes_is_blocked(self, patched_provider, state_path):
        result = main(["--state-file", str(state_path), "cluster", "delete", "clu-123"])
        assert result == ExitCode.BLOCKED

    def test_missing_api_key(self, monkeypatch, state_path):
        monkeypatch.setattr(cluster_cli, "get_settings", lambda: Settings(_env_file=None))
        monkeypatch.delenv("TSCLOUD_MANAGEMENT_API_KEY", raising=False)

        result = main(["--state-file", str(state_path), "cluster", "read", "clu-123"])

        assert result == ExitCode.CONFIG_ERROR

    def test_providers_list(self):
        assert main(["providers", "list"]) == 0


class TestLoggingSetup:
    def test_unknown_log_level_is_config_error(self, state_path):
        result = main(["--log-level", "LOUD", "--state-file", str(state_path), "cluster", "read", "clu-1"])
        assert result == ExitCode.CONFIG_ERROR

    def test_malformed_setting_is_config_error(self, monkeypatch, state_path):
        monkeypatch.setenv("TSCLOUD_POLL_INTERVAL", "often")
        get_settings.cache_clear()

        try:
            result = main(["--state-file", str(state_path), "cluster", "read", "clu-1"])
        finally:
            monkeypatch.delenv("TSCLOUD_POLL_INTERVAL")
            get_settings.cache_clear()

        assert result == ExitCode.CONFIG_ERROR


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("LOUD")
