"""Export the service's environment variables as JSON.

Reads every settings class and writes one entry per variable, so the
deployment docs list exactly what the code reads.

Usage:
    python scripts/export_settings.py [output-path]
"""

import json
import sys
from pathlib import Path
from typing import Type

from pydantic import SecretStr
from pydantic_core import PydanticUndefined
from pydantic_settings import BaseSettings

root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path / "src" / "api"))

from infrastructure.settings import (  # noqa: E402
    AuthSettings,
    CORSSettings,
    DatabaseSettings,
    RealtimeSettings,
    Settings,
)


def describe_field(prefix: str, name: str, field) -> dict:
    type_name = getattr(field.annotation, "__name__", str(field.annotation))
    default = field.get_default(call_default_factory=True)

    # Empty secrets have no usable default and must be set
    is_required = default is PydanticUndefined or (
        isinstance(default, SecretStr) and default.get_secret_value() == ""
    )

    if is_required or default is None:
        shown = None
    elif isinstance(default, SecretStr):
        shown = "********"
    elif isinstance(default, (bool, int, float, list, dict)):
        shown = default
    else:
        shown = str(default)

    return {
        "env_var": f"{prefix}{name.upper()}",
        "type": "Secret" if "Secret" in type_name else type_name,
        "default": shown,
        "required": is_required,
        "description": field.description or "",
    }


def describe_settings(settings_class: Type[BaseSettings]) -> dict:
    prefix = settings_class.model_config.get("env_prefix", "")
    return {
        "prefix": prefix,
        "doc": (settings_class.__doc__ or "").strip(),
        "variables": [
            describe_field(prefix, name, field)
            for name, field in settings_class.model_fields.items()
        ],
    }


def export_settings(output_path: Path) -> None:
    classes = [Settings, DatabaseSettings, AuthSettings, RealtimeSettings, CORSSettings]
    data = {cls.__name__: describe_settings(cls) for cls in classes}

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")

    print(f"Exported {len(classes)} settings groups to {output_path}")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        export_settings(Path(sys.argv[1]))
    else:
        export_settings(root_path / "docs" / "env-vars.json")
