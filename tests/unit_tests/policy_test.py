import pytest
import dataclasses

from kube_registry_guard.policy import Policy


def test_from_string_splits_and_strips():
    """Test that a comma separated whitelist is split and trimmed"""
    policy = Policy.from_string(" docker.io/library/ , gcr.io/myorg/,,")

    assert policy.prefixes == ("docker.io/library/", "gcr.io/myorg/")


def test_from_prefixes_keeps_order():
    """Test that prefix order is preserved"""
    policy = Policy.from_prefixes(["b.io/", "a.io/"])

    assert policy.prefixes == ("b.io/", "a.io/")


def test_matching_prefix_returns_first_match():
    """Test that the first matching prefix short-circuits"""
    policy = Policy.from_prefixes(["gcr.io/", "gcr.io/myorg/"])

    assert policy.matching_prefix("gcr.io/myorg/app:v2") == "gcr.io/"


def test_matching_prefix_is_literal():
    """Test that matching is a plain case-sensitive string prefix"""
    policy = Policy.from_prefixes(["gcr.io/myorg/", "docker.io/*/"])

    assert policy.allows("gcr.io/myorg/app") is True
    assert policy.allows("GCR.IO/myorg/app") is False
    assert policy.allows("docker.io/library/nginx") is False
    assert policy.allows("nginx") is False


def test_empty_policy_allows_nothing():
    """Test that an empty policy denies every image"""
    policy = Policy()

    assert policy.prefixes == ()
    assert policy.allows("docker.io/library/nginx") is False
    assert policy.allows("") is False


def test_policy_is_immutable():
    """Test that the policy cannot be modified after construction"""
    policy = Policy.from_prefixes(["gcr.io/myorg/"])

    with pytest.raises(dataclasses.FrozenInstanceError):
        policy.prefixes = ()


def test_str_lists_all_prefixes():
    policy = Policy.from_prefixes(["docker.io/library/", "gcr.io/myorg/"])

    assert str(policy) == "[docker.io/library/, gcr.io/myorg/]"
