import pytest

from monitoring_manager import kube, orchestrator
from monitoring_manager.config import MinikubeConfig, SetupOptions, StackConfig, TunnelConfig
from monitoring_manager.grafana import GrafanaError
from monitoring_manager.kube import PodLookupError
from monitoring_manager.outcomes import StepResult, StepStatus


class FakeTunnel:
    def __init__(self, events, local_port):
        self.events = events
        self.local_port = local_port

    def wait_until_listening(self, timeout):
        self.events.append(("listening", self.local_port))


class FakeTunnelGroup:
    instances = []

    def __init__(self, events, join_result=None, join_error=None):
        self.events = events
        self.join_result = join_result or {}
        self.join_error = join_error
        self.closed = False
        FakeTunnelGroup.instances.append(self)

    def open(self, namespace, pod, local_port, remote_port):
        self.events.append(("tunnel", pod, local_port, remote_port))
        return FakeTunnel(self.events, local_port)

    def join(self):
        self.events.append(("join",))
        if self.join_error:
            raise self.join_error
        return self.join_result

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        self.events.append(("close",))


class FakeGrafanaClient:
    def __init__(self, events, fail=False):
        self.events = events
        self.fail = fail

    def __call__(self, base_url, username, password):
        self.events.append(("grafana", base_url, username, password))
        return self

    def wait_until_healthy(self, timeout):
        self.events.append(("healthy",))

    def import_dashboard(self, body):
        if self.fail:
            raise GrafanaError("Dashboard import rejected (500)")
        self.events.append(("import", body["dashboard"]["title"]))
        return {"url": "/d/abc"}


@pytest.fixture
def events():
    return []


@pytest.fixture
def wired(monkeypatch, events):
    """Replace every external collaborator of the orchestrator with recorders."""
    FakeTunnelGroup.instances.clear()
    state = {
        "wait": {},
        "pods": {"app.kubernetes.io/name=grafana": "grafana-abc", "app.kubernetes.io/name=prometheus": "prom-0"},
        "tunnel_group": lambda: FakeTunnelGroup(events),
        "grafana": FakeGrafanaClient(events),
    }

    def _wait(namespace, timeout):
        events.append(("wait", namespace, timeout))
        status = state["wait"].get(namespace, StepStatus.COMPLETED)
        return StepResult(f"pods ready in {namespace}", status)

    def _find_pod(namespace, selector):
        events.append(("find_pod", selector))
        if selector not in state["pods"]:
            raise PodLookupError(f"No pod in '{namespace}' matches selector '{selector}'")
        return state["pods"][selector]

    def _secret(namespace, name, key):
        events.append(("secret", name, key))
        return "admin123"

    def _namespace(name):
        events.append(("namespace", name))
        return True

    monkeypatch.setattr(orchestrator, "require_command", lambda cmd: None)
    monkeypatch.setattr(orchestrator, "check_docker_daemon", lambda: events.append(("docker",)))
    monkeypatch.setattr(orchestrator, "reset_cluster", lambda cfg: events.append(("reset",)))
    monkeypatch.setattr(orchestrator, "add_repositories", lambda: events.append(("repos",)))
    monkeypatch.setattr(orchestrator, "ensure_namespace", _namespace)
    monkeypatch.setattr(orchestrator, "install_ingress_controller", lambda cfg: events.append(("ingress",)))
    monkeypatch.setattr(orchestrator, "install_monitoring_stack",
                        lambda cfg: events.append(("monitoring",)) or cfg.work_dir / "monitoring-values.yaml")
    monkeypatch.setattr(orchestrator, "register_ingress_scrape_target",
                        lambda cfg: events.append(("service_monitor",)) or cfg.work_dir / "nginx-servicemonitor.yaml")
    monkeypatch.setattr(orchestrator, "wait_for_pods_ready", _wait)
    monkeypatch.setattr(orchestrator, "find_pod", _find_pod)
    monkeypatch.setattr(orchestrator, "read_secret_value", _secret)
    monkeypatch.setattr(orchestrator, "cluster_ip", lambda cfg: "192.168.49.2")
    monkeypatch.setattr(orchestrator, "TunnelGroup", lambda: state["tunnel_group"]())
    monkeypatch.setattr(orchestrator, "GrafanaClient", lambda *a: state["grafana"](*a))
    return state


def _run(options=None):
    return orchestrator.run_setup(
        options or SetupOptions(), MinikubeConfig(), StackConfig(), TunnelConfig(),
    )


def _index(events, name):
    return next(i for i, e in enumerate(events) if e[0] == name)


class TestOrdering:
    def test_full_sequence_order(self, wired, events):
        report = _run()

        names = [e[0] for e in events]
        assert names == [
            "docker", "reset", "repos", "namespace", "namespace", "ingress", "monitoring",
            "service_monitor", "wait", "wait", "find_pod", "find_pod", "tunnel", "tunnel",
            "listening", "listening", "secret", "grafana", "healthy", "import", "join", "close",
        ]
        assert not report.has_failures

    def test_namespaces_precede_installs_and_installs_precede_lookups(self, wired, events):
        _run()

        last_namespace = max(i for i, e in enumerate(events) if e[0] == "namespace")
        assert last_namespace < _index(events, "ingress")
        assert _index(events, "ingress") < _index(events, "service_monitor")
        assert _index(events, "monitoring") < _index(events, "service_monitor")
        assert _index(events, "service_monitor") < _index(events, "find_pod")

    def test_credentials_fetched_only_after_ports_listen(self, wired, events):
        _run()

        last_listening = max(i for i, e in enumerate(events) if e[0] == "listening")
        assert last_listening < _index(events, "secret") < _index(events, "import")

    def test_tunnel_ports(self, wired, events):
        _run()

        tunnels = [e for e in events if e[0] == "tunnel"]
        assert tunnels == [("tunnel", "grafana-abc", 3000, 3000), ("tunnel", "prom-0", 9090, 9090)]

    def test_skip_cluster_reset(self, wired, events):
        report = _run(SetupOptions(skip_cluster_reset=True))

        assert ("reset",) not in events
        assert ("docker",) not in events
        assert report.get(orchestrator.STEP_CLUSTER).status is StepStatus.SKIPPED


class TestBestEffortReadiness:
    @pytest.mark.parametrize("status", [StepStatus.TIMED_OUT, StepStatus.FAILED])
    def test_unready_pods_do_not_abort(self, wired, events, status):
        wired["wait"] = {"monitoring": status, "ingress-nginx": status}

        report = _run()

        assert ("import", "NGINX Ingress Controller") in events
        recorded = [r for r in report.results if r.step.startswith("pods ready")]
        assert [r.status for r in recorded] == [status, status]
        assert not any(r.fatal for r in recorded)
        assert not report.has_failures

    def test_readiness_uses_configured_timeout(self, wired, events):
        _run()

        assert [e for e in events if e[0] == "wait"] == [
            ("wait", "monitoring", 300), ("wait", "ingress-nginx", 300),
        ]


class TestFailures:
    def test_missing_pod_aborts_and_closes_tunnels(self, wired, events):
        wired["pods"].pop("app.kubernetes.io/name=prometheus")

        with pytest.raises(PodLookupError):
            _run()

        assert FakeTunnelGroup.instances[0].closed
        assert not any(e[0] == "secret" for e in events)

    def test_install_failure_aborts_before_tunnels(self, wired, monkeypatch, events):
        def _boom(cfg):
            raise RuntimeError("chart install rejected")

        monkeypatch.setattr(orchestrator, "install_monitoring_stack", _boom)

        with pytest.raises(RuntimeError, match="chart install rejected"):
            _run()

        assert not any(e[0] in ("service_monitor", "wait", "tunnel") for e in events)

    def test_dashboard_failure_is_recorded(self, wired, events):
        wired["grafana"] = FakeGrafanaClient(events, fail=True)

        report = _run()

        assert report.get(orchestrator.STEP_DASHBOARD).status is StepStatus.FAILED
        assert report.has_failures
        assert ("join",) in events

    def test_unreadable_secret_is_recorded(self, wired, events, monkeypatch, fake_kubectl):
        fake_kubectl.on("get", "secret", stdout="Unable to connect to the server: EOF")
        monkeypatch.setattr(kube, "run_kubectl", fake_kubectl)
        monkeypatch.setattr(orchestrator, "read_secret_value", kube.read_secret_value)

        report = _run()

        assert report.get(orchestrator.STEP_CREDENTIALS).status is StepStatus.FAILED
        assert not any(e[0] == "import" for e in events)
        assert ("join",) in events

    def test_tunnel_exit_code_is_recorded(self, wired, events):
        wired["tunnel_group"] = lambda: FakeTunnelGroup(events, join_result={3000: 1, 9090: 0})

        report = _run()

        tunnel_results = [r for r in report.results if r.step == orchestrator.STEP_TUNNELS]
        assert [r.status for r in tunnel_results] == [StepStatus.COMPLETED, StepStatus.FAILED]
        assert "localhost:3000 exited with 1" in tunnel_results[1].detail
        assert report.has_failures

    def test_operator_interrupt_ends_cleanly(self, wired, events):
        wired["tunnel_group"] = lambda: FakeTunnelGroup(events, join_error=KeyboardInterrupt())

        report = _run()

        assert not report.has_failures
        assert FakeTunnelGroup.instances[0].closed


class TestOptions:
    def test_skip_dashboard(self, wired, events):
        report = _run(SetupOptions(skip_dashboard=True))

        assert not any(e[0] == "import" for e in events)
        assert report.get(orchestrator.STEP_DASHBOARD).status is StepStatus.SKIPPED

    def test_no_wait_does_not_join(self, wired, events):
        _run(SetupOptions(wait_for_tunnels=False))

        assert ("join",) not in events
        assert events[-1] == ("close",)


class TestConnect:
    def test_opens_tunnels_without_provisioning(self, wired, events):
        report = orchestrator.run_connect(MinikubeConfig(), StackConfig(), TunnelConfig(), wait_for_tunnels=False)

        names = {e[0] for e in events}
        assert "tunnel" in names and "secret" in names
        assert not names & {"reset", "repos", "ingress", "monitoring", "import"}
        assert not report.has_failures
