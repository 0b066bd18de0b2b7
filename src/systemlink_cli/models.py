"""Canonical Pydantic models shared across all systemlink-cli modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Compiled service models** -- produced once at startup by the Swagger parser
and read by the CLI layer:
    :class:`ParameterType`, :class:`ParameterLocation`, :class:`Parameter`,
    :class:`Operation`, :class:`Definition`, and the raw input
    :class:`SpecDocument`.

**Per-invocation values** -- produced by the value converter and consumed by
the service caller:
    the tagged value models (:class:`StringValue` ... :class:`ObjectArrayValue`,
    unified as :data:`ConvertedValue`), :class:`ParameterValue`, and
    :class:`Settings`.

**Configuration models** -- the ``systemlink.yaml`` file:
    :class:`ProfileConfig` and :class:`ConfigFile`.

Compiled models and per-invocation values are frozen; nothing mutates them
after construction.
"""

from __future__ import annotations

import enum
import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Compiled service models ---


class ParameterType(str, enum.Enum):
    """Closed set of semantic parameter types.

    Arrays nest one level only; an array of arrays is not representable.
    """

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    FILE = "file"
    STRING_ARRAY = "string[]"
    INTEGER_ARRAY = "integer[]"
    NUMBER_ARRAY = "number[]"
    BOOLEAN_ARRAY = "boolean[]"
    OBJECT_ARRAY = "object[]"

    @property
    def is_array(self) -> bool:
        return self.value.endswith("[]")

    @property
    def item_type(self) -> ParameterType:
        """The element type of an array tag, or the tag itself for scalars."""
        if self.is_array:
            return ParameterType(self.value[:-2])
        return self


class ParameterLocation(str, enum.Enum):
    """Where a parameter's value is transmitted in the HTTP request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"
    FORM_DATA = "form-data"


class Parameter(BaseModel):
    """A declared input of an :class:`Operation`.

    Several parameters of one operation may share a ``name`` when they live in
    different locations (an ``id`` in both the path and the query string);
    a single command-line flag then feeds all of them.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    type_info: ParameterType
    location: ParameterLocation
    required: bool = False


class Operation(BaseModel):
    """One callable HTTP endpoint, e.g. ``GET /nitag/v1/tags/{path}``.

    ``name`` is the derived sub-command name and ``path`` the URL template
    whose ``{name}`` placeholders are filled from path parameters.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    method: str
    path: str
    parameters: list[Parameter] = Field(default_factory=list)

    def parameters_named(self, name: str) -> list[Parameter]:
        """Return every parameter declared under *name*, in declaration order."""
        return [p for p in self.parameters if p.name == name]


class Definition(BaseModel):
    """The compiled model of one service, built from one Swagger document."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    operations: list[Operation] = Field(default_factory=list)


class SpecDocument(BaseModel):
    """A raw Swagger document as read from the models directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes


# --- Converted values ---


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


class _TypedValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    def as_json(self) -> Any:
        """The value as it is placed into a JSON request body."""
        return self.value  # type: ignore[attr-defined]

    def as_text(self) -> str:
        """The value as it is inserted into the path, query string, or headers."""
        return str(self.value)  # type: ignore[attr-defined]


class StringValue(_TypedValue):
    type: Literal[ParameterType.STRING] = ParameterType.STRING
    value: str


class FileValue(_TypedValue):
    """A path to a local file whose content is uploaded as a multipart part."""

    type: Literal[ParameterType.FILE] = ParameterType.FILE
    value: str


class IntegerValue(_TypedValue):
    type: Literal[ParameterType.INTEGER] = ParameterType.INTEGER
    value: int


class NumberValue(_TypedValue):
    type: Literal[ParameterType.NUMBER] = ParameterType.NUMBER
    value: float


class BooleanValue(_TypedValue):
    type: Literal[ParameterType.BOOLEAN] = ParameterType.BOOLEAN
    value: bool

    def as_text(self) -> str:
        return _bool_text(self.value)


class ObjectValue(_TypedValue):
    """Any decoded JSON value; it is passed through untouched."""

    type: Literal[ParameterType.OBJECT] = ParameterType.OBJECT
    value: Any = None

    def as_text(self) -> str:
        return _json_text(self.value)


class StringArrayValue(_TypedValue):
    type: Literal[ParameterType.STRING_ARRAY] = ParameterType.STRING_ARRAY
    value: list[str]

    def as_text(self) -> str:
        return ",".join(self.value)


class IntegerArrayValue(_TypedValue):
    type: Literal[ParameterType.INTEGER_ARRAY] = ParameterType.INTEGER_ARRAY
    value: list[int]

    def as_text(self) -> str:
        return ",".join(str(v) for v in self.value)


class NumberArrayValue(_TypedValue):
    type: Literal[ParameterType.NUMBER_ARRAY] = ParameterType.NUMBER_ARRAY
    value: list[float]

    def as_text(self) -> str:
        return ",".join(str(v) for v in self.value)


class BooleanArrayValue(_TypedValue):
    type: Literal[ParameterType.BOOLEAN_ARRAY] = ParameterType.BOOLEAN_ARRAY
    value: list[bool]

    def as_text(self) -> str:
        return ",".join(_bool_text(v) for v in self.value)


class ObjectArrayValue(_TypedValue):
    """A decoded JSON value for an ``object[]`` parameter, used as-is."""

    type: Literal[ParameterType.OBJECT_ARRAY] = ParameterType.OBJECT_ARRAY
    value: Any = None

    def as_text(self) -> str:
        return _json_text(self.value)


ConvertedValue = Annotated[
    Union[
        StringValue,
        FileValue,
        IntegerValue,
        NumberValue,
        BooleanValue,
        ObjectValue,
        StringArrayValue,
        IntegerArrayValue,
        NumberArrayValue,
        BooleanArrayValue,
        ObjectArrayValue,
    ],
    Field(discriminator="type"),
]
"""Tagged union of every converted value shape, discriminated on ``type``."""


class ParameterValue(BaseModel):
    """A :class:`Parameter` paired with its converted value for one invocation."""

    model_config = ConfigDict(frozen=True)

    parameter: Parameter
    converted: ConvertedValue

    @property
    def name(self) -> str:
        return self.parameter.name

    @property
    def location(self) -> ParameterLocation:
        return self.parameter.location


# --- Settings ---


class Settings(BaseModel):
    """Connection, authentication and proxy settings for one invocation.

    Resolved once per invocation by :func:`~systemlink_cli.config.resolve_settings`
    (profile values overlaid with explicit flags and environment variables)
    and passed by value to the service caller.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    username: str = ""
    password: str = ""
    verbose: bool = False
    url: str = ""
    insecure: bool = False
    ssh_proxy: str = ""
    ssh_key: str = ""
    ssh_known_host: str = ""


# --- Configuration file ---


class ProfileConfig(BaseModel):
    """One entry of the ``profiles`` list in ``systemlink.yaml``.

    Keys use the same dashed spelling as the command-line flags::

        profiles:
          - name: default
            api-key: my-api-key
            url: https://my-server
            ssh-proxy: ubuntu@10.0.0.5:22
            ssh-key: keys/server.pem
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    api_key: Optional[str] = Field(default=None, alias="api-key")
    username: Optional[str] = None
    password: Optional[str] = None
    verbose: Optional[bool] = None
    url: Optional[str] = None
    insecure: Optional[bool] = None
    ssh_proxy: Optional[str] = Field(default=None, alias="ssh-proxy")
    ssh_key: Optional[str] = Field(default=None, alias="ssh-key")
    ssh_known_host: Optional[str] = Field(default=None, alias="ssh-known-host")

    def to_settings(self) -> Settings:
        """Build :class:`Settings` from this profile, treating unset keys as empty."""
        return Settings(
            api_key=self.api_key or "",
            username=self.username or "",
            password=self.password or "",
            verbose=bool(self.verbose),
            url=self.url or "",
            insecure=bool(self.insecure),
            ssh_proxy=self.ssh_proxy or "",
            ssh_key=self.ssh_key or "",
            ssh_known_host=self.ssh_known_host or "",
        )


class ConfigFile(BaseModel):
    """The parsed ``systemlink.yaml`` configuration file."""

    model_config = ConfigDict(extra="ignore")

    profiles: list[ProfileConfig] = Field(default_factory=list)
