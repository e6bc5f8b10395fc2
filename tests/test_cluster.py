import pytest
import sh

from monitoring_manager import cluster
from monitoring_manager.cluster import cluster_ip, reset_cluster, start_cluster
from monitoring_manager.config import MinikubeConfig
from tests.conftest import error_return_code


class TestResetCluster:
    def test_stop_delete_start_in_order(self, monkeypatch, fake_sh):
        monkeypatch.setattr(cluster, "sh", fake_sh)

        reset_cluster(MinikubeConfig())

        assert fake_sh.commands("minikube") == [
            ("stop", "-p", "minikube"),
            ("delete", "-p", "minikube"),
            ("start", "-p", "minikube", "--driver=docker", "--memory=6144", "--cpus=4",
             "--kubernetes-version=v1.26.3"),
        ]

    def test_missing_cluster_does_not_block_start(self, monkeypatch, fake_sh):
        def _minikube(*args):
            if args[0] in ("stop", "delete"):
                raise error_return_code(f"minikube {args[0]}", "Profile not found")
            return ""

        fake_sh.handlers["minikube"] = _minikube
        monkeypatch.setattr(cluster, "sh", fake_sh)

        reset_cluster(MinikubeConfig())

        assert [c[0] for c in fake_sh.commands("minikube")] == ["stop", "delete", "start"]


class TestStartCluster:
    def test_overrides_are_passed(self, monkeypatch, fake_sh):
        monkeypatch.setattr(cluster, "sh", fake_sh)
        mk_cfg = MinikubeConfig().model_copy(update={"memory_mb": 8192, "cpus": 2})

        start_cluster(mk_cfg)

        (args,) = fake_sh.commands("minikube")
        assert "--memory=8192" in args
        assert "--cpus=2" in args

    def test_retries_then_reraises(self, monkeypatch, fake_sh):
        def _fail(*args):
            raise error_return_code("minikube start", "driver error")

        fake_sh.handlers["minikube"] = _fail
        monkeypatch.setattr(cluster, "sh", fake_sh)
        monkeypatch.setattr(cluster, "CLUSTER_START_RETRY_WAIT_SECONDS", 0)

        with pytest.raises(sh.ErrorReturnCode):
            start_cluster(MinikubeConfig().model_copy(update={"max_retries": 2}))

        assert len(fake_sh.commands("minikube")) == 2


class TestClusterIp:
    def test_strips_output(self, monkeypatch, fake_sh):
        fake_sh.handlers["minikube"] = lambda *args: "192.168.49.2\n"
        monkeypatch.setattr(cluster, "sh", fake_sh)

        assert cluster_ip(MinikubeConfig()) == "192.168.49.2"


class TestCheckDockerDaemon:
    def test_unreachable_daemon(self, monkeypatch):
        def _from_env():
            raise cluster.docker.errors.DockerException("socket missing")

        monkeypatch.setattr(cluster.docker, "from_env", _from_env)

        with pytest.raises(RuntimeError, match="Docker daemon is not reachable"):
            cluster.check_docker_daemon()
