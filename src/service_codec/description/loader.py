"""Service description loader.

Reads a YAML or JSON description and builds a validated Description.
Model references (``$ref``) and operation inheritance (``extends``) are
resolved here, before validation, so dispatch never has to look them up.
"""

import copy
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from service_codec.description.base import Description
from service_codec.errors import DescriptionError
from service_codec.filters import DEFAULT_FILTERS, FilterFunc

logger = logging.getLogger(__name__)

REF_KEY = "$ref"


def load_description(file_path: Path, filters: Mapping[str, FilterFunc] | None = None) -> Description:
    """Load a description file. YAML and JSON are both accepted."""
    text = Path(file_path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise DescriptionError(f"{file_path} does not contain a service description object")
    return build_description(data, filters=filters)


def build_description(data: dict, filters: Mapping[str, FilterFunc] | None = None) -> Description:
    """Resolve references and inheritance in raw description data, then validate it."""
    data = copy.deepcopy(data)
    models = data.get("models") or {}
    data["models"] = {name: _resolve_refs(model, models, (name,)) for name, model in models.items()}

    operations = _apply_extends(data.get("operations") or {})
    for name, operation in operations.items():
        for key in ("parameters", "additionalParameters"):
            if key in operation:
                operation[key] = _resolve_refs(operation[key], models, ())
        model_name = operation.get("responseModel")
        if model_name is not None and model_name not in models:
            raise DescriptionError(f"Unknown response model '{model_name}'", operation=name)
    data["operations"] = operations

    description = Description.model_validate(
        data, context={"filters": filters if filters is not None else DEFAULT_FILTERS}
    )
    logger.debug(
        "Loaded description %r: %d operations, %d models",
        description.name,
        len(description.operations),
        len(description.models),
    )
    return description


def _resolve_refs(node: Any, models: Mapping[str, Any], trail: tuple[str, ...]) -> Any:
    """Replace ``{"$ref": name, ...}`` with the model merged under the sibling keys."""
    if isinstance(node, list):
        return [_resolve_refs(item, models, trail) for item in node]
    if not isinstance(node, dict):
        return node

    if REF_KEY in node:
        name = node[REF_KEY]
        if name not in models:
            raise DescriptionError(f"Reference to unknown model '{name}'")
        if name in trail:
            raise DescriptionError(f"Circular model reference: {' -> '.join(trail + (name,))}")
        target = _resolve_refs(models[name], models, trail + (name,))
        siblings = {key: value for key, value in node.items() if key != REF_KEY}
        # the referenced model's name must not leak into the referencing parameter
        merged = {key: value for key, value in target.items() if key != "name"}
        merged.update(_resolve_refs(siblings, models, trail))
        return merged

    return {key: _resolve_refs(value, models, trail) for key, value in node.items()}


def _apply_extends(operations: Mapping[str, Any]) -> dict[str, Any]:
    resolved: dict[str, dict] = {}

    def resolve(name: str, trail: tuple[str, ...]) -> dict:
        if name in resolved:
            return resolved[name]
        if name not in operations:
            raise DescriptionError(
                f"Operation extends unknown operation '{name}'", operation=trail[-1] if trail else None
            )
        if name in trail:
            raise DescriptionError(f"Circular operation extends: {' -> '.join(trail + (name,))}")

        operation = dict(operations[name])
        parents = operation.pop("extends", [])
        if isinstance(parents, str):
            parents = [parents]

        merged: dict = {}
        for parent in parents:
            inherited = resolve(parent, trail + (name,))
            merged.update({key: value for key, value in inherited.items() if key not in ("parameters", "name")})
            merged["parameters"] = {**merged.get("parameters", {}), **inherited.get("parameters", {})}
        parameters = {**merged.get("parameters", {}), **operation.get("parameters", {})}
        merged.update(operation)
        if parameters:
            merged["parameters"] = parameters

        resolved[name] = merged
        return merged

    return {name: resolve(name, ()) for name in operations}
