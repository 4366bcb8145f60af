"""Deployment mechanism detection for recorded tags."""

from __future__ import annotations

import re

from rollback.models.history import MechanismKind

PM2_PREFIX = "pm2:"

# Short image:tag form, e.g. myapp:v2.0
DOCKER_SHORT_PATTERN = re.compile(r"[\w.-]+:[\w.-]+", re.ASCII)
# Abbreviated or full commit hash
GIT_HASH_PATTERN = re.compile(r"[a-f0-9]{7,40}")
# Version tag prefix, e.g. v1.2, 2.0.1, v3.1-rc1
GIT_VERSION_PATTERN = re.compile(r"^v?\d+\.\d+", re.ASCII)


def classify_tag(tag: str) -> MechanismKind:
    """Classify a tag into the mechanism used to roll it back.

    Rules are applied in order and the first match wins:

    1. contains both ``/`` and ``:`` (``registry.io/app:v2``) -> docker
    2. ``image:tag`` -> docker
    3. 7-40 lowercase hex characters -> git
    4. ``v1.2`` / ``2.0`` style version -> git
    5. ``pm2:`` prefix -> pm2
    6. anything else -> custom

    A bare ``pm2:app`` matches the ``image:tag`` rule and is docker; use
    ``pm2:app@1.0`` or ``--type pm2`` to record a pm2 process.

    Args:
        tag: The deployed tag

    Returns:
        The detected MechanismKind; never raises

    Example:
        >>> classify_tag("registry.io/app:v2")
        <MechanismKind.DOCKER: 'docker'>
        >>> classify_tag("v1.2:beta")
        <MechanismKind.DOCKER: 'docker'>
    """
    if "/" in tag and ":" in tag:
        return MechanismKind.DOCKER
    if DOCKER_SHORT_PATTERN.fullmatch(tag):
        return MechanismKind.DOCKER
    if GIT_HASH_PATTERN.fullmatch(tag):
        return MechanismKind.GIT
    if GIT_VERSION_PATTERN.match(tag):
        return MechanismKind.GIT
    if tag.startswith(PM2_PREFIX):
        return MechanismKind.PM2
    return MechanismKind.CUSTOM


def resolve_kind(tag: str, override: MechanismKind | str | None = None) -> MechanismKind:
    """Return the override when given, otherwise the detected kind."""
    if override is not None:
        return MechanismKind(override)
    return classify_tag(tag)
