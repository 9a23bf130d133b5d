import logging

from kubernetes import config, client
from openshift.dynamic import DynamicClient
from typing_extensions import Protocol

from exc import ProviderError

LOG = logging.getLogger(__name__)


class Provider(Protocol):
    def namespace_annotations(self, namespace_name: str) -> dict[str, str]: ...


class KubernetesProvider(Provider):
    def __init__(self, kubeconfig: str | None = None):
        """Allocate a Kubernetes dynamic client and Namespace API client.

        If `kubeconfig` names a configuration file, use it; otherwise assume
        we are running inside the cluster.
        """

        super().__init__()

        try:
            if kubeconfig:
                k8s_client = config.new_client_from_config(config_file=kubeconfig)
            else:
                k8s_config = client.Configuration()
                config.load_incluster_config(client_configuration=k8s_config)
                k8s_client = client.ApiClient(configuration=k8s_config)
        except config.ConfigException as err:
            LOG.warning("unable to configure Kubernetes client: %s", err)
            raise ProviderError("unable to configure Kubernetes client")

        dyn_client = DynamicClient(k8s_client)

        self._client = dyn_client
        self._namespace_resource = dyn_client.resources.get(
            api_version="v1", kind="Namespace"
        )

    def namespace_annotations(self, namespace_name):
        namespace_obj = self._namespace_resource.get(name=namespace_name)
        return namespace_obj.to_dict()["metadata"].get("annotations") or {}
