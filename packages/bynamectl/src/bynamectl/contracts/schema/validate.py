from __future__ import annotations

import json
from typing import Any

from ...core.errors import ScriptError
from ...core.exit_codes import ERR_VALIDATION
from .catalog import schema_path_for


def schema_errors(schema_name: str, payload: Any) -> list[str]:
    import jsonschema

    schema = json.loads(schema_path_for(schema_name).read_text(encoding="utf-8"))
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)
    errors: list[str] = []
    for exc in sorted(validator.iter_errors(payload), key=lambda err: list(err.absolute_path)):
        pointer = "/".join(str(p) for p in exc.absolute_path)
        errors.append(f"{pointer or '<root>'}: {exc.message}")
    return errors


def validate(schema_name: str, payload: Any) -> None:
    import jsonschema

    schema = json.loads(schema_path_for(schema_name).read_text(encoding="utf-8"))
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(f"schema validation failed for {schema_name} at {loc}: {exc.message}", ERR_VALIDATION) from exc
