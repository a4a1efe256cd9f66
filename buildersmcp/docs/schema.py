"""Data models for remote tool definitions, call results, and schema translation."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    create_model,
    field_validator,
)


class SchemaFieldKind(str, Enum):
    """Value kinds a remote parameter can translate to."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    ANY = "any"


_KIND_BY_TYPE: Dict[str, SchemaFieldKind] = {
    "string": SchemaFieldKind.STRING,
    "number": SchemaFieldKind.NUMBER,
    "integer": SchemaFieldKind.NUMBER,
    "boolean": SchemaFieldKind.BOOLEAN,
    "array": SchemaFieldKind.ARRAY,
    "object": SchemaFieldKind.OBJECT,
}

_PYTHON_TYPES: Dict[SchemaFieldKind, Any] = {
    SchemaFieldKind.STRING: StrictStr,
    SchemaFieldKind.NUMBER: Union[StrictInt, StrictFloat],
    SchemaFieldKind.BOOLEAN: StrictBool,
    SchemaFieldKind.ARRAY: List[Any],
    SchemaFieldKind.OBJECT: Dict[str, Any],
    SchemaFieldKind.ANY: Any,
}


class FieldSpec(BaseModel):
    """A single translated parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: SchemaFieldKind = SchemaFieldKind.ANY
    description: str = ""
    required: bool = False

    @property
    def python_type(self) -> Any:
        return _PYTHON_TYPES[self.kind]


class RemoteToolDef(BaseModel):
    """Tool definition as advertised by the remote server's ``tools/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict, alias="inputSchema")

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("input_schema", mode="before")
    @classmethod
    def _coerce_schema(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    def params(self) -> List[FieldSpec]:
        return list(translate_schema(self.input_schema).values())

    def full_schema_text(self, local_name: Optional[str] = None) -> str:
        """Full parameter listing as text, used by ``list_tools``."""
        lines = [f"### {local_name or self.name}", self.description or "(no description)", "**Parameters:**"]
        params = self.params()
        if not params:
            lines.append("- (none)")
        for p in params:
            req = "required" if p.required else "optional"
            desc = f": {p.description}" if p.description else ""
            lines.append(f"- `{p.name}` ({p.kind.value}, {req}){desc}")
        return "\n".join(lines)


class ContentBlock(BaseModel):
    """One typed block of tool output. Non-text payload keys are kept as extras."""

    model_config = ConfigDict(extra="allow")

    type: str = "text"
    text: Optional[str] = None

    def as_text(self) -> str:
        if self.text is not None:
            return self.text
        return json.dumps(self.model_dump(exclude_none=True), default=str)


class ToolResult(BaseModel):
    """Outcome of a single tool invocation: content blocks plus an error flag."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[ContentBlock] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @field_validator("is_error", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        # Only a literal true marks an error; "false", 1 and null do not.
        return value is True

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolResult":
        return cls(content=[ContentBlock(type="text", text=text)], is_error=is_error)

    @property
    def text(self) -> str:
        return "\n".join(block.as_text() for block in self.content)


class HealthStatus(BaseModel):
    """Docs proxy health as reported by the ``health`` meta-tool and ``/health``."""

    healthy: bool
    tool_count: int = 0
    last_error: Optional[str] = None


# ── Schema translation ────────────────────────────────────────────────────


def _field_kind(prop: Any) -> SchemaFieldKind:
    if not isinstance(prop, dict):
        return SchemaFieldKind.ANY
    declared = prop.get("type")
    if not isinstance(declared, str):
        return SchemaFieldKind.ANY
    return _KIND_BY_TYPE.get(declared, SchemaFieldKind.ANY)


def translate_schema(input_schema: Any) -> Dict[str, FieldSpec]:
    """
    Translate a remote JSON-Schema-like parameter block into field specs.

    Never raises: anything unrecognised degrades to the permissive ``any``
    kind, and a missing or malformed ``properties`` map yields no fields.
    """
    if not isinstance(input_schema, dict):
        return {}
    properties = input_schema.get("properties")
    if not isinstance(properties, dict):
        return {}

    required = input_schema.get("required")
    required_names = {r for r in required if isinstance(r, str)} if isinstance(required, list) else set()

    fields: Dict[str, FieldSpec] = {}
    for name, prop in properties.items():
        name = str(name)
        description = prop.get("description") if isinstance(prop, dict) else None
        fields[name] = FieldSpec(
            name=name,
            kind=_field_kind(prop),
            description=description if isinstance(description, str) else "",
            required=name in required_names,
        )
    return fields


def _model_name(tool_name: str) -> str:
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in tool_name)
    return f"{cleaned or 'Tool'}Params"


def build_params_model(tool_name: str, fields: Dict[str, FieldSpec]) -> Type[BaseModel]:
    """
    Build a pydantic model that validates one tool's arguments.

    Attribute names are positional (``field_0`` ...) and the remote names are
    carried as aliases, so any remote name is accepted. Optional fields default
    to ``None``; unknown keys are dropped.
    """
    definitions: Dict[str, Any] = {}
    for index, spec in enumerate(fields.values()):
        description = spec.description or None
        if spec.required:
            definitions[f"field_{index}"] = (
                spec.python_type,
                Field(..., alias=spec.name, description=description),
            )
        else:
            definitions[f"field_{index}"] = (
                Optional[spec.python_type],
                Field(default=None, alias=spec.name, description=description),
            )

    return create_model(
        _model_name(tool_name),
        __config__=ConfigDict(extra="ignore"),
        **definitions,
    )
