from enum import Enum
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from gschema import log


class ModuleLayout(str, Enum):
    STEM = "stem"
    DIRECTORY = "directory"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)


class DirectiveNames(_ConfigModel):
    """Names of the SDL directives the schema compiler consumes."""

    field_resolver: str = "r"
    fields_resolver: str = "f"
    type_resolver: str = "t"
    input_parser: str = "v"
    scalar: str = "scalar"

    @property
    def wiring(self) -> frozenset[str]:
        return frozenset({self.field_resolver, self.fields_resolver})


class SchemaCompilerConfig(_ConfigModel):
    module_layout: ModuleLayout = ModuleLayout.STEM
    default_module: str = "default"
    locator_token: str = "Di"
    directives: DirectiveNames = Field(default_factory=DirectiveNames)
    type_resolver_exempt: list[str] = Field(default_factory=lambda: ["RecordSet"])
    scalar_module_prefix: str | None = None

    @field_validator("locator_token")
    @classmethod
    def validate_locator_token(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"Locator token must be an identifier, got '{value}'")
        return value


class OperationCompilerConfig(_ConfigModel):
    default_destination: str = "default"
    hash_map_file: str = "query-hash.json"


class RuntimeConfig(_ConfigModel):
    query_type: str = "Query"
    mutation_type: str = "Mutation"
    assume_valid: bool = False


class GSchemaConfig(_ConfigModel):
    schema_: SchemaCompilerConfig = Field(default_factory=SchemaCompilerConfig, alias="schema")
    operations: OperationCompilerConfig = Field(default_factory=OperationCompilerConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)


def load_config(config_path: Path | None) -> GSchemaConfig:
    """
    Load and validate the gschema configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None to use defaults.

    Returns:
        A validated GSchemaConfig.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If the YAML root is not a mapping.
        ValidationError: If validation against GSchemaConfig fails.
    """
    if config_path is None:
        log.debug("No config file provided, using defaults")
        return GSchemaConfig()

    raw: Any
    with config_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    log.debug("Loaded config from %s", config_path)

    # Empty file or explicit YAML null means defaults
    if raw is None or raw == {}:
        return GSchemaConfig()

    if not isinstance(raw, dict):
        raise TypeError(f"Config root must be a mapping (YAML object), got {type(raw).__name__}")

    return GSchemaConfig.model_validate(cast(dict[str, Any], raw))
