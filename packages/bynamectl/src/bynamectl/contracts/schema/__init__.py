from .catalog import lint_catalog, load_catalog, schema_path_for
from .validate import schema_errors, validate

__all__ = ["lint_catalog", "load_catalog", "schema_errors", "schema_path_for", "validate"]
