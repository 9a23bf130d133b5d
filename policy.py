import logging

from models import NamespacePolicy
from providers import Provider
from exc import PolicyLookupError

LOG = logging.getLogger(__name__)


class ANNOTATIONS:
    # "key1,key2,..." -- one podAntiAffinity term per topology key
    ANTI_AFFINITY = "kojedz.in/podantiaffinitytopologykeys"

    # "label=match[,label=match]" -- merged into the pod's nodeSelector
    NODE_SELECTOR = "kojedz.in/nodeselectors"

    # "key1,key2,..." -- one topologySpreadConstraint per topology key
    TOPOLOGY_SPREAD = "kojedz.in/topologyspreadconstrainttopologykeys"


def parse_node_selectors(annotation: str | None) -> tuple[tuple[str, str], ...]:
    """Parse "k1=v1,k2=v2" into (key, value) pairs.

    Tokens that do not contain exactly one "=" are dropped.
    """
    if not annotation:
        return ()

    pairs = []
    for token in annotation.split(","):
        parsed = token.split("=")
        if len(parsed) != 2:
            LOG.debug("ignoring malformed node selector %r", token)
            continue
        pairs.append((parsed[0], parsed[1]))

    return tuple(pairs)


def parse_topology_keys(annotation: str | None) -> tuple[str, ...]:
    if not annotation:
        return ()

    return tuple(key for key in annotation.split(",") if key)


def policy_from_annotations(annotations: dict[str, str] | None) -> NamespacePolicy:
    annotations = annotations or {}
    return NamespacePolicy(
        node_selectors=parse_node_selectors(annotations.get(ANNOTATIONS.NODE_SELECTOR)),
        anti_affinity_topology_keys=parse_topology_keys(
            annotations.get(ANNOTATIONS.ANTI_AFFINITY)
        ),
        topology_spread_topology_keys=parse_topology_keys(
            annotations.get(ANNOTATIONS.TOPOLOGY_SPREAD)
        ),
    )


def resolve_policy(provider: Provider, namespace_name: str) -> NamespacePolicy:
    """Look up a namespace and return the scheduling policy from its annotations.

    Every failure to fetch the namespace is reported as PolicyLookupError; the
    lookup is not retried.
    """
    if not namespace_name:
        raise PolicyLookupError("request does not name a namespace")

    try:
        annotations = provider.namespace_annotations(namespace_name)
    except Exception as err:
        LOG.error("failed to look up namespace %s: %s", namespace_name, err)
        raise PolicyLookupError(f"failed to look up namespace {namespace_name}")

    return policy_from_annotations(annotations)
