"""test_config_bridge.py

ConfigBridge attribute/method surface.

Tests
-----
* Every option reachable by name, dispatch tables in sync with the policy.
* Rejections carry a code, a label naming the attribute, and the value.
* Dedicated methods, including the resource callback scenario.
* PolicyValue proxy behaviour.
* Bulk apply_settings.
"""

from __future__ import annotations

import pytest

from embedpack_core.bridge.config_bridge import (
    ATTRIBUTE_TABLE,
    METHOD_NAMES,
    ConfigBridge,
    ConfigLanguageError,
    ErrorCode,
    UnknownConfigAttributeError,
    verify_dispatch_tables,
)
from embedpack_core.errors import CallbackError
from embedpack_core.policy.packaging_policy import POLICY_OPTIONS
from embedpack_core.resources.context import CollectionContext


@pytest.fixture
def bridge():
    return ConfigBridge()


class TestDispatchTables:
    def test_tables_cover_every_option(self) -> None:
        assert set(ATTRIBUTE_TABLE) == set(POLICY_OPTIONS)
        verify_dispatch_tables()

    def test_dir_lists_attributes_and_methods(self, bridge) -> None:
        names = bridge.dir_attrs()
        assert names == sorted(names)
        assert set(names) == set(POLICY_OPTIONS) | set(METHOD_NAMES)

    @pytest.mark.parametrize("name", POLICY_OPTIONS)
    def test_every_option_readable(self, bridge, name) -> None:
        assert bridge.has_attr(name)
        assert bridge.get_attr(name) == bridge.policy.get(name)


class TestAttributes:
    def test_set_then_get(self, bridge) -> None:
        bridge.set_attr("include_test", True)
        bridge.set_attr("resources_location", "filesystem-relative:app")
        assert bridge.get_attr("include_test") is True
        assert bridge.get_attr("resources_location") == "filesystem-relative:app"

    def test_writes_reach_shared_policy(self, policy) -> None:
        bridge = ConfigBridge(policy)
        bridge.set_attr("allow_files", True)
        assert policy.get("allow_files") is True

    def test_invalid_value(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_attr("extension_module_filter", "bogus")
        err = excinfo.value
        assert err.code == ErrorCode.invalid_value
        assert err.attribute == "extension_module_filter"
        assert err.value == "bogus"
        assert err.label == "PythonPackagingPolicy.extension_module_filter = 'bogus'"
        assert str(err).startswith("[EMBEDPACK_INVALID_VALUE] PythonPackagingPolicy.extension_module_filter")
        assert bridge.get_attr("extension_module_filter") == "all"

    def test_bytes_filter_rejected(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_attr("extension_module_filter", b"no-library")
        assert excinfo.value.code == ErrorCode.invalid_value
        assert bridge.get_attr("extension_module_filter") == "all"

    def test_unknown_attribute_get(self, bridge) -> None:
        assert not bridge.has_attr("include_everything")
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.get_attr("include_everything")
        assert excinfo.value.code == ErrorCode.unknown_attribute
        assert "include_everything" in str(excinfo.value)

    def test_unknown_attribute_set(self, bridge) -> None:
        before = bridge.policy.options()
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_attr("include_everything", True)
        assert excinfo.value.code == ErrorCode.unknown_attribute
        assert bridge.policy.options() == before

    def test_variant_mapping_is_read_only(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_attr("preferred_extension_module_variants", {"foo": "bar"})
        assert excinfo.value.code == ErrorCode.read_only
        assert bridge.get_attr("preferred_extension_module_variants") == {}


class TestMethods:
    def test_set_preferred_variant(self, bridge) -> None:
        bridge.call_method("set_preferred_extension_module_variant", "foo", "bar")
        assert bridge.get_attr("preferred_extension_module_variants") == {"foo": "bar"}

    def test_set_preferred_variant_invalid(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_preferred_extension_module_variant("", "bar")
        assert excinfo.value.code == ErrorCode.invalid_value

    def test_set_resource_handling_mode(self, bridge) -> None:
        bridge.call_method("set_resource_handling_mode", "files")
        assert bridge.get_attr("allow_files") is True
        assert bridge.get_attr("include_classified_resources") is False

    def test_set_resource_handling_mode_invalid(self, bridge) -> None:
        before = bridge.policy.options()
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.set_resource_handling_mode("invalid")
        assert excinfo.value.code == ErrorCode.invalid_value
        assert excinfo.value.value == "invalid"
        assert bridge.policy.options() == before

    def test_unknown_method(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.call_method("snapshot")
        assert excinfo.value.code == ErrorCode.unknown_attribute

    def test_register_rejects_non_callable(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.register_resource_callback(42)
        assert excinfo.value.code == ErrorCode.invalid_value
        assert len(bridge.callbacks) == 0

    def test_registered_callback_runs_at_apply(self, bridge, module_source) -> None:
        def exclude(policy, resource):
            return resource.collection_context.model_copy(update={"include": False})

        bridge.register_resource_callback(exclude)
        assert module_source.collection_context is None

        bridge.applicator().apply_to_resource(module_source)
        assert module_source.collection_context.include is False

    def test_callback_sees_policy_snapshot(self, bridge, module_source) -> None:
        seen = []

        def record(policy, resource):
            seen.append(policy.get("include_test"))
            policy.set("include_test", False)

        bridge.set_attr("include_test", True)
        bridge.register_resource_callback(record)
        bridge.applicator().apply_to_resource(module_source)
        assert seen == [True]
        assert bridge.get_attr("include_test") is True

    def test_callback_failure_surfaces(self, bridge, module_source) -> None:
        bridge.register_resource_callback(lambda policy, resource: 1 / 0)
        with pytest.raises(CallbackError):
            bridge.applicator().apply_to_resource(module_source)
        assert isinstance(module_source.collection_context, CollectionContext)


class TestPolicyValue:
    def test_attribute_style_access(self, bridge) -> None:
        value = bridge.value()
        value.include_test = True
        assert value.include_test is True
        assert bridge.policy.get("include_test") is True

    def test_methods(self, bridge) -> None:
        value = bridge.value()
        value.set_preferred_extension_module_variant("foo", "bar")
        value.set_resource_handling_mode("files")
        assert value.preferred_extension_module_variants == {"foo": "bar"}
        assert value.allow_files is True

    def test_errors_propagate(self, bridge) -> None:
        value = bridge.value()
        with pytest.raises(ConfigLanguageError):
            value.bytecode_optimize_level_one = "yes"
        with pytest.raises(ConfigLanguageError):
            value.nonexistent

    def test_unknown_names_behave_like_missing_attributes(self, bridge) -> None:
        value = bridge.value()
        assert hasattr(value, "include_test")
        assert not hasattr(value, "nope")
        assert getattr(value, "nope", "fallback") == "fallback"
        with pytest.raises(AttributeError):
            value.nope

    def test_unknown_name_error_keeps_code(self, bridge) -> None:
        with pytest.raises(UnknownConfigAttributeError) as excinfo:
            bridge.value().nope = True
        assert isinstance(excinfo.value, ConfigLanguageError)
        assert excinfo.value.code == ErrorCode.unknown_attribute

    def test_dir_and_repr(self, bridge) -> None:
        value = bridge.value()
        assert "include_test" in dir(value)
        assert "register_resource_callback" in dir(value)
        assert repr(value) == "<PythonPackagingPolicy>"


class TestApplySettings:
    def test_mode_applied_before_explicit_toggles(self, bridge) -> None:
        bridge.apply_settings({"allow_files": False, "resource_handling_mode": "files"})
        assert bridge.get_attr("allow_files") is False
        assert bridge.get_attr("include_file_resources") is True

    def test_variant_mapping_entries(self, bridge) -> None:
        bridge.apply_settings({"preferred_extension_module_variants": {"_ssl": "static", "foo": "bar"}})
        assert bridge.get_attr("preferred_extension_module_variants") == {"_ssl": "static", "foo": "bar"}

    def test_variant_mapping_must_be_mapping(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError):
            bridge.apply_settings({"preferred_extension_module_variants": ["foo"]})

    def test_unknown_key(self, bridge) -> None:
        with pytest.raises(ConfigLanguageError) as excinfo:
            bridge.apply_settings({"include_everything": True})
        assert excinfo.value.code == ErrorCode.unknown_attribute
