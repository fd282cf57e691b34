# -*- coding: utf-8 -*-
"""
Hypothesis profiles for the property tests.

- HYPOTHESIS_PROFILE=dev|ci|stress selects a profile explicitly
- otherwise "ci" when CI is truthy, "dev" locally

Per-test overrides go in @settings(...) on the test itself.
"""
from __future__ import annotations

import os

from hypothesis import HealthCheck, settings

settings.register_profile(
    "dev",
    settings(max_examples=100, deadline=None, suppress_health_check=(HealthCheck.too_slow,)),
)
settings.register_profile(
    "ci",
    settings(
        max_examples=200,
        deadline=None,
        derandomize=True,
        suppress_health_check=(HealthCheck.too_slow,),
    ),
)
settings.register_profile(
    "stress",
    settings(max_examples=1000, deadline=None, suppress_health_check=(HealthCheck.too_slow,)),
)


def _env_truthy(name: str) -> bool:
    return (os.getenv(name) or "").lower() not in ("", "0", "false", "no", "off")


settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev"))
