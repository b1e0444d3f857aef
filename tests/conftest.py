"""Pytest configuration and shared fixtures."""

import copy
import logging
import threading

import pytest
import yaml
from hypothesis import Verbosity, settings
from kubernetes.client.exceptions import ApiException

from armada.apply import ResourceApplier
from armada.config import ArmadaSettings, CreateFlags
from armada.exceptions import ProvisioningError
from armada.lifecycle import ClusterLifecycle
from armada.orchestrator import FleetOrchestrator
from armada.planner import plan_cluster
from armada.waiter import Observation

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


RAW_KUBECONFIG = {
    "apiVersion": "v1",
    "kind": "Config",
    "preferences": {},
    "clusters": [
        {
            "cluster": {"certificate-authority-data": "Q0EK", "server": "https://127.0.0.1:38765"},
            "name": "kind-placeholder",
        }
    ],
    "contexts": [
        {
            "context": {"cluster": "kind-placeholder", "user": "kind-placeholder"},
            "name": "kind-placeholder",
        }
    ],
    "current-context": "kind-placeholder",
    "users": [
        {
            "name": "kind-placeholder",
            "user": {"client-certificate-data": "Q0VSVAo=", "client-key-data": "S0VZCg=="},
        }
    ],
}


class FakeEngine:
    """In-memory bring-up engine that records every call."""

    def __init__(self, known=(), events=None):
        self.known = set(known)
        self.events = events if events is not None else []
        self.failures = {}
        self.created = []
        self.deleted = []
        self.exported = []
        self.loaded = []
        self._lock = threading.Lock()

    def _record(self, action, name):
        with self._lock:
            self.events.append((action, name))
        error = self.failures.get((action, name))
        if error is not None:
            raise error

    def known_clusters(self):
        return sorted(self.known)

    def is_known(self, name):
        return name in self.known

    def create(self, spec, config_path):
        self._record("create", spec.name)
        spec.kubeconfig_path.parent.mkdir(parents=True, exist_ok=True)
        spec.kubeconfig_path.write_text(yaml.safe_dump(RAW_KUBECONFIG))
        with self._lock:
            self.created.append((spec.name, config_path))
            self.known.add(spec.name)

    def delete(self, name, kubeconfig_path):
        self._record("delete", name)
        with self._lock:
            self.deleted.append(name)
            self.known.discard(name)

    def export_logs(self, name, dest):
        self._record("export", name)
        with self._lock:
            self.exported.append((name, dest))

    def load_image(self, image, name):
        self._record("load", name)
        with self._lock:
            self.loaded.append((image, name))


class FakeRuntime:
    """Container runtime with fixed addresses, subnets and local images."""

    def __init__(self, events=None, subnets=(), images=()):
        self.events = events if events is not None else []
        self.subnets = list(subnets)
        self.images = set(images)
        self._lock = threading.Lock()

    def control_plane_address(self, cluster):
        with self._lock:
            self.events.append(("finalize", cluster))
        return "172.18.0.2"

    def bridge_subnets(self):
        return list(self.subnets)

    def has_image(self, reference):
        return reference in self.images


class FakeClock:
    """Clock whose time only advances when sleep is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds, interrupt=None):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeKubeApi:
    """Stands in for every typed Kubernetes API; stores created objects by method."""

    def __init__(self, fail=None):
        self.objects = {}
        self.calls = []
        self.fail = fail or {}
        self._lock = threading.Lock()

    def __getattr__(self, method):
        if not method.startswith("create_"):
            raise AttributeError(method)

        def create(*args):
            body = args[-1]
            namespace = args[0] if len(args) == 2 else None
            name = body["metadata"]["name"]
            key = (method, namespace, name)
            with self._lock:
                self.calls.append(key)
                if name in self.fail:
                    raise ApiException(status=self.fail[name], reason="Forbidden")
                if key in self.objects:
                    raise ApiException(status=409, reason="Conflict")
                self.objects[key] = body
            return body

        return create


class FakeApiClient:
    """Context-managed stand-in for kubernetes.client.ApiClient."""

    def __init__(self, path):
        self.path = path
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class RecordingProbes:
    """Probe factory whose probes report ready and remember their targets."""

    def __init__(self, ready=True):
        self.ready = ready
        self.targets = []
        self._lock = threading.Lock()

    def __call__(self, kind, api_client):
        def probe(target):
            with self._lock:
                self.targets.append(target)
            return Observation(self.ready, "fake")

        return probe


@pytest.fixture
def raw_kubeconfig():
    """Kubeconfig as kind writes it, with placeholder identity names."""
    return copy.deepcopy(RAW_KUBECONFIG)


@pytest.fixture
def logger():
    return logging.getLogger("armada.test")


@pytest.fixture
def armada_settings(tmp_path):
    return ArmadaSettings(output_dir=tmp_path / "output", kube_dir=tmp_path / ".kube")


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def fake_engine(events):
    return FakeEngine(events=events)


@pytest.fixture
def fake_runtime(events):
    return FakeRuntime(events=events, images={"nginx:latest", "busybox:1.36"})


@pytest.fixture
def fake_api():
    return FakeKubeApi()


@pytest.fixture
def probes():
    return RecordingProbes()


@pytest.fixture
def api_clients():
    return []


@pytest.fixture
def lifecycle(armada_settings, fake_engine, fake_runtime, fake_api, probes, fake_clock, logger, api_clients):
    def _open(path):
        client = FakeApiClient(path)
        api_clients.append(client)
        return client

    return ClusterLifecycle(
        armada_settings,
        fake_engine,
        fake_runtime,
        logger,
        kube_client_factory=_open,
        applier_factory=lambda client, name, log: ResourceApplier(client, name, log, api_factory=lambda api: fake_api),
        probe_factory=probes,
        clock=fake_clock,
    )


@pytest.fixture
def orchestrator(armada_settings, lifecycle, logger):
    return FleetOrchestrator(armada_settings, lifecycle, logger)


@pytest.fixture
def make_spec(armada_settings):
    def _make(index=1, **flags):
        return plan_cluster(index, CreateFlags(**flags), armada_settings)

    return _make


@pytest.fixture
def provisioning_error():
    def _make(name, message="boom"):
        return ProvisioningError(name, message)

    return _make
