"""
External parameters for recall ({{param:...}} / {{hidden:...}}).

Values come from three places, lowest priority first:
    1. the static default configured on the form
    2. the hosting page URL, for parameters marked transitive
    3. the form's own query string

Names used by the embedding/transport layer are reserved and never
become recall parameters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from formrt.model import UrlParamConfig

RESERVED_URL_PARAMS = frozenset({
    "embed",
    "mode",
    "org_id",
    "theme",
    "lang",
    "progress",
    "hideTitle",
    "hideDescription",
})

PARAM_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass
class ParamConfigValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


def is_reserved_param(name: str) -> bool:
    return name in RESERVED_URL_PARAMS


def is_valid_param_name(name: str) -> bool:
    return bool(PARAM_NAME_RE.match(name or "")) and not is_reserved_param(name)


def validate_url_param_config(configs: Sequence[UrlParamConfig]) -> ParamConfigValidation:
    """Check names: present, well-formed, not reserved, unique."""
    errors: List[str] = []
    seen = set()

    for index, param in enumerate(configs, start=1):
        if not param.name:
            errors.append(f"Parameter {index}: Name is required")
            continue

        if not is_valid_param_name(param.name):
            if is_reserved_param(param.name):
                errors.append(f'Parameter "{param.name}": Reserved parameter name')
            else:
                errors.append(
                    f'Parameter "{param.name}": Invalid format (use only letters, numbers, and underscores)'
                )

        if param.name in seen:
            errors.append(f'Parameter "{param.name}": Duplicate name')
        seen.add(param.name)

    return ParamConfigValidation(valid=not errors, errors=errors)


def strip_reserved_params(params: Mapping[str, str]) -> Dict[str, str]:
    """Copy of params without transport-layer names."""
    return {k: v for k, v in params.items() if not is_reserved_param(k)}


def resolve_url_params(configs: Sequence[UrlParamConfig],
                       query: Optional[Mapping[str, str]] = None,
                       host_params: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Recall parameter map for a form view.

    Only configured, non-reserved parameters are returned, and only those
    that ended up with a value.
    """
    query = query or {}
    host_params = host_params or {}
    resolved: Dict[str, str] = {}

    for cfg in configs:
        if not cfg.name or is_reserved_param(cfg.name):
            continue

        value: Optional[str] = cfg.default_value or None
        if cfg.transitive_default and host_params.get(cfg.name) is not None:
            value = host_params[cfg.name]
        if query.get(cfg.name) is not None:
            value = query[cfg.name]

        if value is not None:
            resolved[cfg.name] = str(value)

    return resolved
