import yaml

from monitoring_manager import components
from monitoring_manager.components import (
    install_ingress_controller,
    install_monitoring_stack,
    register_ingress_scrape_target,
)
from monitoring_manager.config import StackConfig


class TestInstallIngressController:
    def test_metrics_and_service_type_overrides(self, monkeypatch):
        calls = []
        monkeypatch.setattr(components, "install_release", lambda *a, **kw: calls.append((a, kw)))

        install_ingress_controller(StackConfig())

        (args, kwargs), = calls
        assert args == ("nginx-ingress", "nginx-stable/nginx-ingress", "ingress-nginx")
        assert kwargs["set_values"] == {
            "controller.metrics.enabled": "true",
            "controller.service.type": "NodePort",
        }


class TestInstallMonitoringStack:
    def test_writes_values_then_installs(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr(components, "install_release", lambda *a, **kw: calls.append((a, kw)))

        values_file = install_monitoring_stack(StackConfig(work_dir=tmp_path))

        assert values_file == tmp_path / "monitoring-values.yaml"
        values = yaml.safe_load(values_file.read_text())
        assert values["alertmanager"]["alertmanagerSpec"]["storage"] == {"emptyDir": {}}
        (args, kwargs), = calls
        assert args == ("monitoring-stack", "prometheus-community/kube-prometheus-stack", "monitoring")
        assert kwargs["values_file"] == values_file


class TestRegisterScrapeTarget:
    def test_writes_and_applies_service_monitor(self, monkeypatch, tmp_path):
        applied = []
        monkeypatch.setattr(components, "apply_manifest", applied.append)

        manifest = register_ingress_scrape_target(StackConfig(work_dir=tmp_path))

        assert applied == [manifest]
        document = yaml.safe_load(manifest.read_text())
        assert document["kind"] == "ServiceMonitor"
        assert document["spec"]["endpoints"] == [{"port": "metrics", "interval": "30s"}]
