"""
Changeset pipeline.

Folds every extension's changeset logic over one changeset, in config
order. Each stage sees the result of all previous stages.
"""
from __future__ import annotations

from typing import Any, Mapping
import logging

from extauth.core.changeset import Changeset
from extauth.core.config import ExtensionConfig
from .interfaces import Capability, extension_name
from .registry import ExtensionRegistry

logger = logging.getLogger(__name__)


def apply(
    changeset: Changeset,
    params: Mapping[str, Any] | None,
    config: ExtensionConfig,
) -> Changeset:
    """
    Run the changeset logic of all extensions.

    Errors accumulate across stages. A stage that drops upstream errors
    gets them restored.

    Raises:
        TypeError: If a stage does not return a Changeset
    """
    params = dict(params or {})

    for extension in ExtensionRegistry.discover(config, Capability.CHANGESET):
        name = extension_name(extension)
        upstream = changeset.errors
        result = extension.changeset(changeset, params, config)

        if not isinstance(result, Changeset):
            raise TypeError(
                f"Extension {name} returned {type(result).__name__} "
                f"from changeset(), expected Changeset"
            )

        if any(error not in result.errors for error in upstream):
            logger.warning(f"Extension {name} dropped upstream errors, restoring them")
            result = result.merge_errors(upstream)

        logger.debug(f"Changeset stage {name}: {len(result.errors)} error(s)")
        changeset = result

    return changeset
