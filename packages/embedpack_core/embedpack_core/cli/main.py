"""embedpack_core.cli.main

Entry point for `embedpack` CLI.

Commands:
- embedpack policy [--distribution ID | --target TRIPLE] [--policy-file policy.yaml]
- embedpack derive --resources manifest.yaml [--policy-file ...] [--keep-going]
- embedpack distributions
- embedpack env
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import pydantic
import yaml

from embedpack_core.config import build_bridge, load_resource_manifest
from embedpack_core.distribution import DistributionKeyError, DistributionRegistry
from embedpack_core.environment import resolve_environment
from embedpack_core.errors import PolicyError


def _add_policy_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--distribution", type=str, default=None, help="Runtime distribution id")
    p.add_argument("--target", type=str, default=None, help="Target triple; uses its default distribution")
    p.add_argument("--policy-file", type=str, default=None, help="Path to policy YAML file")


def _bridge_from_args(args):
    return build_bridge(
        policy_file=args.policy_file,
        distribution_id=args.distribution,
        target_triple=args.target,
    )


def cmd_policy(args):
    bridge = _bridge_from_args(args)
    print(json.dumps(bridge.policy.options(), indent=2, sort_keys=False))


def cmd_derive(args):
    bridge = _bridge_from_args(args)
    resources = load_resource_manifest(args.resources)
    report = bridge.applicator().apply_to_resources(resources, keep_going=args.keep_going)
    out = {
        "resources": {
            r.name: r.collection_context.describe() for r in report.applied
        },
        "conflicts": [
            {"resource": c.resource_name, "location": c.location, "reason": c.reason}
            for c in report.conflicts
        ],
    }
    print(json.dumps(out, indent=2))
    return 0 if report.ok else 1


def cmd_distributions(args):
    registry = DistributionRegistry()
    out = {}
    for dist_id in registry.list_ids():
        dist = registry.get(dist_id)
        out[dist_id] = {
            "python_version": dist.python_version,
            "target_triple": dist.target_triple,
            "flavor": dist.flavor.value,
            "supports_in_memory_shared_library_loading": dist.supports_in_memory_shared_library_loading,
        }
    print(json.dumps(out, indent=2))


def cmd_env(args):
    print(resolve_environment().version_long())


def build_parser():
    p = argparse.ArgumentParser(prog="embedpack", description="Resource packaging policy engine.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_policy = sub.add_parser("policy", help="Print the effective packaging policy")
    _add_policy_args(p_policy)
    p_policy.set_defaults(func=cmd_policy)

    p_derive = sub.add_parser("derive", help="Apply the policy to a resource manifest")
    _add_policy_args(p_derive)
    p_derive.add_argument("--resources", required=True, help="Path to resource manifest YAML")
    p_derive.add_argument(
        "--keep-going",
        action="store_true",
        help="Record placement conflicts and continue with the remaining resources",
    )
    p_derive.set_defaults(func=cmd_derive)

    p_dists = sub.add_parser("distributions", help="List known runtime distributions")
    p_dists.set_defaults(func=cmd_distributions)

    p_env = sub.add_parser("env", help="Show where embedpack and pyembed are resolved from")
    p_env.set_defaults(func=cmd_env)

    return p


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        rc = args.func(args)
    except (PolicyError, DistributionKeyError, pydantic.ValidationError, yaml.YAMLError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return rc or 0


if __name__ == "__main__":
    sys.exit(main())
