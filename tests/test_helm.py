from pathlib import Path

from monitoring_manager import helm
from monitoring_manager.helm import add_repositories, install_release, uninstall_release
from tests.conftest import error_return_code


class TestAddRepositories:
    def test_adds_both_repos_then_updates(self, monkeypatch, fake_sh):
        monkeypatch.setattr(helm, "sh", fake_sh)

        add_repositories()

        assert fake_sh.commands("helm") == [
            ("repo", "add", "prometheus-community", "https://prometheus-community.github.io/helm-charts",
             "--force-update"),
            ("repo", "add", "nginx-stable", "https://helm.nginx.com/stable", "--force-update"),
            ("repo", "update"),
        ]


class TestInstallRelease:
    def test_uses_upgrade_install_with_overrides(self, monkeypatch, fake_sh):
        monkeypatch.setattr(helm, "sh", fake_sh)

        install_release(
            "nginx-ingress", "nginx-stable/nginx-ingress", "ingress-nginx",
            set_values={"controller.metrics.enabled": "true"},
        )

        assert fake_sh.commands("helm") == [(
            "upgrade", "--install", "nginx-ingress", "nginx-stable/nginx-ingress",
            "--namespace", "ingress-nginx",
            "--set", "controller.metrics.enabled=true",
        )]

    def test_values_file_and_version(self, monkeypatch, fake_sh):
        monkeypatch.setattr(helm, "sh", fake_sh)

        install_release(
            "monitoring-stack", "prometheus-community/kube-prometheus-stack", "monitoring",
            values_file=Path("/tmp/monitoring-values.yaml"), version="58.0.0",
        )

        assert fake_sh.commands("helm") == [(
            "upgrade", "--install", "monitoring-stack", "prometheus-community/kube-prometheus-stack",
            "--namespace", "monitoring",
            "--version", "58.0.0",
            "--values", "/tmp/monitoring-values.yaml",
        )]

    def test_rerun_issues_identical_command(self, monkeypatch, fake_sh):
        monkeypatch.setattr(helm, "sh", fake_sh)

        for _ in range(2):
            install_release("nginx-ingress", "nginx-stable/nginx-ingress", "ingress-nginx")

        first, second = fake_sh.commands("helm")
        assert first == second


class TestUninstallRelease:
    def test_missing_release_is_tolerated(self, monkeypatch, fake_sh):
        def _uninstall(*args):
            raise error_return_code("helm uninstall", "release: not found")

        fake_sh.handlers["helm"] = _uninstall
        monkeypatch.setattr(helm, "sh", fake_sh)

        uninstall_release("monitoring-stack", "monitoring")

        assert fake_sh.commands("helm") == [("uninstall", "monitoring-stack", "-n", "monitoring")]
