"""Shared pytest fixtures for embedpack_core tests."""

from __future__ import annotations

import pytest

from embedpack_core.contracts import ProvenanceClass, ResourceKind
from embedpack_core.policy.packaging_policy import PolicyConfiguration
from embedpack_core.resources.resource import ExtensionModuleVariant, Resource


@pytest.fixture
def policy():
    """Bare default policy."""
    return PolicyConfiguration()


@pytest.fixture
def module_source():
    return Resource(
        name="acme.widgets",
        kind=ResourceKind.module_source,
        provenance=ProvenanceClass.non_distribution,
    )


@pytest.fixture
def extension_module():
    """Multi-variant extension module that cannot be loaded from memory."""
    return Resource(
        name="foo",
        kind=ResourceKind.extension_module,
        provenance=ProvenanceClass.non_distribution,
        supports_in_memory_loading=False,
        available_variants=[
            ExtensionModuleVariant(name="default", link_libraries=["ssl"], licenses=["OpenSSL"]),
            ExtensionModuleVariant(name="bar"),
        ],
        default_variant="default",
    )


@pytest.fixture
def raw_file():
    return Resource(
        name="acme/data/logo.png",
        kind=ResourceKind.file,
        provenance=ProvenanceClass.non_distribution,
    )


@pytest.fixture
def make_resource():
    """Factory for ad-hoc resources with sensible defaults."""

    def _make(name="mod", kind=ResourceKind.module_source, **kwargs):
        return Resource(name=name, kind=kind, **kwargs)

    return _make
