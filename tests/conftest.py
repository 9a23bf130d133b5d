import pytest

import mutate


NAMESPACES = {
    "default": {},
    "scheduled": {
        "kojedz.in/nodeselectors": "disktype=ssd,zone=us",
        "kojedz.in/podantiaffinitytopologykeys": "kubernetes.io/hostname",
        "kojedz.in/topologyspreadconstrainttopologykeys": "topology.kubernetes.io/zone",
    },
}


class FakeProvider:
    def __init__(self, kubeconfig=None):
        self.kubeconfig = kubeconfig
        self.lookups = []

    def namespace_annotations(self, namespace_name):
        self.lookups.append(namespace_name)
        return NAMESPACES[namespace_name]


@pytest.fixture()
def fake_provider():
    return FakeProvider()


@pytest.fixture()
def app():
    app = mutate.create_app(
        PROVIDER=FakeProvider,
        TESTING=True,
    )
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def provider_class():
    return FakeProvider
