"""Prompt template interpolation."""

import re
from collections.abc import Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def interpolate(template: str, variables: Mapping[str, object]) -> str:
    """Replace ``{{name}}`` placeholders with values from ``variables``.

    Placeholders without a matching variable are left untouched so that a
    missing value shows up in the rendered prompt instead of vanishing.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables and variables[name] is not None:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)
