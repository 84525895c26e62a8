"""test_cli.py

`embedpack` command-line entry point.
"""

from __future__ import annotations

import json
import textwrap

from embedpack_core.cli.main import main

MANIFEST = """
resources:
  - name: acme.widgets
    kind: module-source
  - name: _cffi_backend
    kind: extension-module
    supports_in_memory_loading: false
    available_variants:
      - name: default
"""


def _manifest(tmp_path):
    path = tmp_path / "resources.yaml"
    path.write_text(textwrap.dedent(MANIFEST), encoding="utf-8")
    return str(path)


class TestPolicyCommand:
    def test_prints_default_policy(self, capsys) -> None:
        assert main(["policy"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["resources_location"] == "in-memory"
        assert out["extension_module_filter"] == "all"

    def test_target_triple(self, capsys) -> None:
        assert main(["policy", "--target", "x86_64-pc-windows-msvc"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["allow_in_memory_shared_library_loading"] is True

    def test_unknown_distribution_exit_code(self, capsys) -> None:
        assert main(["policy", "--distribution", "nope"]) == 2
        assert "nope" in capsys.readouterr().err

    def test_invalid_policy_file_exit_code(self, tmp_path, capsys) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text("policy:\n  include_test: maybe\n", encoding="utf-8")
        assert main(["policy", "--policy-file", str(path)]) == 2
        assert "EMBEDPACK_INVALID_VALUE" in capsys.readouterr().err


class TestDeriveCommand:
    def test_malformed_manifest_exit_code(self, tmp_path, capsys) -> None:
        path = tmp_path / "resources.yaml"
        path.write_text("resources:\n  - name: x\n    kind: bogus\n", encoding="utf-8")
        assert main(["derive", "--resources", str(path)]) == 2
        assert "error:" in capsys.readouterr().err

    def test_conflict_is_fatal_by_default(self, tmp_path, capsys) -> None:
        assert main(["derive", "--resources", _manifest(tmp_path)]) == 2
        assert "_cffi_backend" in capsys.readouterr().err

    def test_keep_going_reports_conflicts(self, tmp_path, capsys) -> None:
        assert main(["derive", "--resources", _manifest(tmp_path), "--keep-going"]) == 1
        out = json.loads(capsys.readouterr().out)
        assert list(out["resources"]) == ["acme.widgets"]
        assert out["resources"]["acme.widgets"]["location"] == "in-memory"
        assert out["conflicts"][0]["resource"] == "_cffi_backend"

    def test_linux_default_has_no_fallback(self, tmp_path, capsys) -> None:
        rc = main(["derive", "--resources", _manifest(tmp_path), "--target", "x86_64-unknown-linux-gnu"])
        assert rc == 2
        assert "_cffi_backend" in capsys.readouterr().err

    def test_policy_file_fallback_resolves_conflict(self, tmp_path, capsys) -> None:
        policy_file = tmp_path / "policy.yaml"
        policy_file.write_text(
            "policy:\n  resources_location_fallback: filesystem-relative:lib\n", encoding="utf-8"
        )
        rc = main(
            [
                "derive",
                "--resources",
                _manifest(tmp_path),
                "--target",
                "x86_64-unknown-linux-gnu",
                "--policy-file",
                str(policy_file),
            ]
        )
        assert rc == 0
        out = json.loads(capsys.readouterr().out)
        ext = out["resources"]["_cffi_backend"]
        assert ext["location"] == "filesystem-relative:lib"
        assert ext["location_fallback"] is None
        assert ext["variant"] == "default"


class TestInfoCommands:
    def test_distributions(self, capsys) -> None:
        assert main(["distributions"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["cpython-3.9-x86_64-pc-windows-msvc"]["supports_in_memory_shared_library_loading"] is True

    def test_env(self, capsys) -> None:
        assert main(["env"]) == 0
        assert "pyembed location:" in capsys.readouterr().out
