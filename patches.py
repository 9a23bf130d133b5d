from typing import Any

from models import (
    NamespacePolicy,
    Patch,
    PatchAction,
    PatchOp,
    Pod,
)

NODE_SELECTOR_PATH = "/spec/nodeSelector"
AFFINITY_PATH = "/spec/affinity"
POD_ANTI_AFFINITY_PATH = f"{AFFINITY_PATH}/podAntiAffinity"
ANTI_AFFINITY_TERMS_PATH = (
    f"{POD_ANTI_AFFINITY_PATH}/requiredDuringSchedulingIgnoredDuringExecution"
)
TOPOLOGY_SPREAD_PATH = "/spec/topologySpreadConstraints"


def has_affinity(pod: Pod) -> bool:
    return pod.spec.affinity is not None


def has_pod_anti_affinity(pod: Pod) -> bool:
    return has_affinity(pod) and pod.spec.affinity.podAntiAffinity is not None


def has_anti_affinity_terms(pod: Pod) -> bool:
    return (
        has_pod_anti_affinity(pod)
        and pod.spec.affinity.podAntiAffinity.requiredDuringSchedulingIgnoredDuringExecution
        is not None
    )


def has_topology_spread_constraints(pod: Pod) -> bool:
    return pod.spec.topologySpreadConstraints is not None


def label_selector(pod: Pod) -> dict[str, Any]:
    """Select pods carrying the same labels as `pod`."""
    if not pod.metadata.labels:
        return {}
    return {"matchLabels": dict(pod.metadata.labels)}


def node_selector_patch(pod: Pod, policy: NamespacePolicy) -> list[PatchAction]:
    if not policy.node_selectors:
        return []

    node_selector = dict(pod.spec.nodeSelector or {})
    node_selector.update(policy.node_selectors)

    # A replace against a missing path is invalid JSON Patch
    op = PatchOp.REPLACE if pod.spec.nodeSelector is not None else PatchOp.ADD
    return [PatchAction(op=op, path=NODE_SELECTOR_PATH, value=node_selector)]


def anti_affinity_patch(pod: Pod, policy: NamespacePolicy) -> list[PatchAction]:
    if not policy.anti_affinity_topology_keys:
        return []

    actions = []
    if not has_affinity(pod):
        actions.append(PatchAction(op=PatchOp.ADD, path=AFFINITY_PATH, value={}))
    if not has_pod_anti_affinity(pod):
        actions.append(
            PatchAction(op=PatchOp.ADD, path=POD_ANTI_AFFINITY_PATH, value={})
        )
    if not has_anti_affinity_terms(pod):
        actions.append(
            PatchAction(op=PatchOp.ADD, path=ANTI_AFFINITY_TERMS_PATH, value=[])
        )

    for topology_key in policy.anti_affinity_topology_keys:
        actions.append(
            PatchAction(
                op=PatchOp.ADD,
                path=f"{ANTI_AFFINITY_TERMS_PATH}/-",
                value={
                    "labelSelector": label_selector(pod),
                    "topologyKey": topology_key,
                },
            )
        )

    return actions


def topology_spread_patch(pod: Pod, policy: NamespacePolicy) -> list[PatchAction]:
    if not policy.topology_spread_topology_keys:
        return []

    actions = []
    if not has_topology_spread_constraints(pod):
        actions.append(PatchAction(op=PatchOp.ADD, path=TOPOLOGY_SPREAD_PATH, value=[]))

    for topology_key in policy.topology_spread_topology_keys:
        actions.append(
            PatchAction(
                op=PatchOp.ADD,
                path=f"{TOPOLOGY_SPREAD_PATH}/-",
                value={
                    "maxSkew": 1,
                    "topologyKey": topology_key,
                    "whenUnsatisfiable": "DoNotSchedule",
                    "labelSelector": label_selector(pod),
                },
            )
        )

    return actions


def build_patch(pod: Pod, policy: NamespacePolicy) -> Patch:
    """Describe the changes `policy` makes to `pod` as a JSON Patch.

    The node selector, anti-affinity and topology spread passes touch
    disjoint parts of the pod spec and always run in that order. The pod
    itself is never modified.
    """
    return Patch(
        node_selector_patch(pod, policy)
        + anti_affinity_patch(pod, policy)
        + topology_spread_patch(pod, policy)
    )
