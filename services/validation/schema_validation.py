from pathlib import Path
import json
import jsonschema

REPO_ROOT = Path(__file__).resolve().parents[2]
SCHEMA_DIR = REPO_ROOT / "config" / "schemas"


def _load_schema(schema_name: str) -> dict:
    schema_path = SCHEMA_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def get_required_fields(schema_name: str):
    try:
        schema = _load_schema(schema_name)
    except FileNotFoundError:
        return []
    req = schema.get("required", [])
    return req if isinstance(req, list) else []


def validate_with_schema(data, schema_name: str):
    try:
        schema = _load_schema(schema_name)
    except FileNotFoundError as e:
        return False, str(e)

    try:
        jsonschema.validate(instance=data, schema=schema)
        return True, "Valid"
    except jsonschema.exceptions.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path)
        return False, f"{path}: {e.message}" if path else e.message
