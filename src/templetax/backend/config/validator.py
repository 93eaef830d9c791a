"""Utilities for validating portal configuration and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Sequence

from .schema import ConfigurationError, PortalSettings, SeedConfig, TenancyConfig
from .settings import load_settings


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_seed(seed: SeedConfig) -> list[str]:
    errors: list[str] = []
    years = list(seed.years)

    if seed.enabled and not years:
        errors.append(_format_scope("seed", "seeding is enabled but no tax settings are listed"))

    if years != sorted(years):
        errors.append(_format_scope("seed.tax_settings", "years should be listed in ascending order"))

    for entry in seed.tax_settings:
        scope = f"seed.tax_settings[{entry.year}]"
        if not entry.description.strip():
            errors.append(_format_scope(scope, "description is empty"))
        if not entry.is_active and entry.include_previous_years:
            errors.append(
                _format_scope(
                    scope,
                    "inactive years never take part in calculations; "
                    "include_previous_years has no effect",
                )
            )

    return errors


def _validate_tenancy(tenancy: TenancyConfig, seed: SeedConfig) -> list[str]:
    errors: list[str] = []
    if seed.enabled and seed.tenant != tenancy.default_tenant:
        errors.append(
            _format_scope(
                "seed.tenant",
                f"seeds tenant {seed.tenant} but requests default to tenant "
                f"{tenancy.default_tenant}",
            )
        )
    return errors


def validate_settings(settings: PortalSettings) -> list[str]:
    """Return human-readable issues detected in ``settings``."""

    errors: list[str] = []
    errors.extend(_validate_seed(settings.seed))
    errors.extend(_validate_tenancy(settings.tenancy, settings.seed))

    return errors


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate the portal settings file and report issues."
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with a failure status when any issue is reported",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except (ConfigurationError, FileNotFoundError) as error:
        print(f"failed to load settings: {error}")
        return 1

    issues = validate_settings(settings)
    if not issues:
        print("settings OK")
        return 0

    print(f"{len(issues)} issue(s) detected:")
    for issue in issues:
        print(f"  - {issue}")
    return 1 if args.strict else 0


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
