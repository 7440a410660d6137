"""Tests for the container runner."""

import asyncio

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError

from launcher.common.models import ContainerConfiguration, StorageMount
from launcher.docker_handler.exceptions import ContainerRunError, StartFailureReason
from launcher.runner import ContainerRunner, build_create_options


def web_conf(**kwargs) -> ContainerConfiguration:
    return ContainerConfiguration(image="nginx:latest", name="web", **kwargs)


class TestBuildCreateOptions:
    """Tests for build_create_options."""

    def test_minimal(self):
        """Test a configuration with only required fields."""
        options, config = build_create_options(web_conf())
        assert options == {"name": "web"}
        assert config == {"Image": "nginx:latest"}

    def test_hostname_and_domain(self):
        """Test network identity passes through verbatim."""
        _, config = build_create_options(web_conf(hostname="web01", domain="example.org"))
        assert config["Hostname"] == "web01"
        assert config["Domainname"] == "example.org"

    def test_environment(self):
        """Test environment flattening."""
        _, config = build_create_options(web_conf(environment={"A": "1", "B": "2"}))
        assert set(config["Env"]) == {"A=1", "B=2"}
        assert len(config["Env"]) == 2

    def test_storage(self):
        """Test storage becomes host config binds."""
        _, config = build_create_options(
            web_conf(
                storage=[
                    StorageMount(host="/data", local="/app/data", ro=True),
                    StorageMount(host="/data", local="/app/data", ro=False),
                ]
            )
        )
        assert config["HostConfig"] == {"Binds": ["/data/app/data:ro", "/data/app/data"]}

    def test_no_storage_no_host_config(self):
        """Test absent storage yields no host config."""
        _, config = build_create_options(web_conf(environment={"A": "1"}))
        assert "HostConfig" not in config

    def test_ports_not_translated(self):
        """Test ports produce no binding or exposed-port directive."""
        _, config = build_create_options(web_conf(ports=[80, 443]))
        assert config == {"Image": "nginx:latest"}


class TestRunContainer:
    """Tests for ContainerRunner.run_container."""

    def test_existing_container_is_not_recreated(self, fake_engine):
        """Test a container found by name is started without a create."""
        fake_engine.add_container("abc123", "web")

        asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert fake_engine.calls == [("list", True), ("start", "abc123")]

    def test_missing_container_is_created_then_started(self, fake_engine):
        """Test create precedes start and start uses the created ID."""
        asyncio.run(ContainerRunner(fake_engine).run_container(web_conf(environment={"A": "1"})))

        assert fake_engine.operations() == ["list", "create", "start"]
        _, options, config = fake_engine.calls[1]
        assert options == {"name": "web"}
        assert config["Env"] == ["A=1"]
        assert fake_engine.calls[2] == ("start", fake_engine.containers[0].id)

    def test_name_match_is_exact(self, fake_engine):
        """Test a similarly named container is not a match."""
        fake_engine.add_container("other", "web-1")

        asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert fake_engine.operations() == ["list", "create", "start"]

    def test_second_run_reuses_container(self, fake_engine):
        """Test running twice creates once and starts twice."""
        runner = ContainerRunner(fake_engine)

        asyncio.run(runner.run_container(web_conf()))
        asyncio.run(runner.run_container(web_conf()))

        assert fake_engine.operations() == ["list", "create", "start", "list", "start"]

    def test_image_mismatch_reuses_and_warns(self, fake_engine, caplog):
        """Test a container with another image is still reused."""
        fake_engine.add_container("abc123", "web", image="httpd:2")

        with caplog.at_level("WARNING"):
            asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert fake_engine.calls[-1] == ("start", "abc123")
        assert "httpd:2" in caplog.text

    def test_list_failure_short_circuits(self, fake_engine):
        """Test a failed lookup stops before create and start."""
        fake_engine.errors["list"] = RequestsConnectionError(
            OSError("connect: permission denied")
        )

        with pytest.raises(ContainerRunError) as exc_info:
            asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert exc_info.value.reason is StartFailureReason.PERMISSION_DENIED
        assert exc_info.value.message == "connect: permission denied"
        assert fake_engine.operations() == ["list"]

    def test_create_failure_is_converted(self, fake_engine, api_error):
        """Test a missing image surfaces as a typed error."""
        fake_engine.errors["create"] = api_error(404, "No such image: nginx:latest")

        with pytest.raises(ContainerRunError) as exc_info:
            asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert exc_info.value.reason is StartFailureReason.IMAGE_DOES_NOT_EXIST
        assert fake_engine.operations() == ["list", "create"]

    def test_start_failure_leaves_created_container(self, fake_engine, api_error):
        """Test a failed start after create is not rolled back."""
        error = api_error(500, "OCI runtime create failed")
        fake_engine.errors["start"] = error

        with pytest.raises(ContainerRunError) as exc_info:
            asyncio.run(ContainerRunner(fake_engine).run_container(web_conf()))

        assert exc_info.value.reason is StartFailureReason.OTHER
        assert exc_info.value.message == str(error)
        assert exc_info.value.__cause__ is error
        assert len(fake_engine.containers) == 1
        assert fake_engine.operations() == ["list", "create", "start"]

    def test_concurrent_runs_race_on_create(self, fake_engine):
        """Test two concurrent runs for one name may both attempt create.

        The lookup and the create are not atomic; the loser of the race gets
        the daemon's name conflict as an unclassified error.
        """
        runner = ContainerRunner(fake_engine)

        async def run_both():
            return await asyncio.gather(
                runner.run_container(web_conf()),
                runner.run_container(web_conf()),
                return_exceptions=True,
            )

        results = asyncio.run(run_both())

        assert fake_engine.operations().count("create") == 2
        assert len(fake_engine.containers) == 1
        errors = [r for r in results if isinstance(r, ContainerRunError)]
        assert len(errors) == 1
        assert errors[0].reason is StartFailureReason.OTHER
        assert "already in use" in errors[0].message
