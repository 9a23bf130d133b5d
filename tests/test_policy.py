import pytest

import policy
from exc import PolicyLookupError
from models import NamespacePolicy


def test_parse_node_selectors():
    res = policy.parse_node_selectors("disktype=ssd,zone=us")
    assert res == (("disktype", "ssd"), ("zone", "us"))


def test_parse_node_selectors_drops_malformed_tokens():
    res = policy.parse_node_selectors("a=b=c,novalue,,disktype=ssd")
    assert res == (("disktype", "ssd"),)


def test_parse_node_selectors_keeps_repeated_keys_in_order():
    res = policy.parse_node_selectors("zone=a,zone=b")
    assert res == (("zone", "a"), ("zone", "b"))


@pytest.mark.parametrize("annotation", [None, ""])
def test_parse_node_selectors_empty(annotation):
    assert policy.parse_node_selectors(annotation) == ()


def test_parse_topology_keys_skips_empty_tokens():
    res = policy.parse_topology_keys("zone,,rack,")
    assert res == ("zone", "rack")


def test_parse_topology_keys_keeps_duplicates():
    res = policy.parse_topology_keys("zone,zone")
    assert res == ("zone", "zone")


def test_policy_from_annotations():
    res = policy.policy_from_annotations(
        {
            "kojedz.in/nodeselectors": "disktype=ssd",
            "kojedz.in/podantiaffinitytopologykeys": "kubernetes.io/hostname",
            "kojedz.in/topologyspreadconstrainttopologykeys": "zone,rack",
            "unrelated/annotation": "ignored",
        }
    )
    assert res == NamespacePolicy(
        node_selectors=(("disktype", "ssd"),),
        anti_affinity_topology_keys=("kubernetes.io/hostname",),
        topology_spread_topology_keys=("zone", "rack"),
    )


def test_policy_from_no_annotations():
    assert policy.policy_from_annotations(None) == NamespacePolicy()


def test_resolve_policy(fake_provider):
    res = policy.resolve_policy(fake_provider, "scheduled")
    assert res.node_selectors == (("disktype", "ssd"), ("zone", "us"))
    assert fake_provider.lookups == ["scheduled"]


def test_resolve_policy_repeats_lookup(fake_provider):
    policy.resolve_policy(fake_provider, "default")
    policy.resolve_policy(fake_provider, "default")
    assert fake_provider.lookups == ["default", "default"]


def test_resolve_policy_lookup_failure(fake_provider):
    with pytest.raises(PolicyLookupError):
        policy.resolve_policy(fake_provider, "missing-namespace")


def test_resolve_policy_no_namespace(fake_provider):
    with pytest.raises(PolicyLookupError):
        policy.resolve_policy(fake_provider, None)
    assert fake_provider.lookups == []
