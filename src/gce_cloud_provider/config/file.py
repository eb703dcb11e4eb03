"""Cloud provider config file loading.

The file is the gcfg-style INI document shared with the Kubernetes GCE cloud
provider::

    [global]
    token-url = https://example.com/token
    token-body = "{\\"scope\\": \\"compute\\"}"
    project-id = my-project
    zone = us-central1-a

All keys are optional and unknown keys or sections are ignored. Having no
file at all is legal and is represented by ``None``.
"""

import configparser
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigMalformedError, ConfigUnreadableError

logger = logging.getLogger("gce-cloud-provider.config")

GLOBAL_SECTION = "global"

_QUOTE_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}


class ConfigGlobal(BaseModel):
    """The ``[global]`` section. Empty strings mean "not set"."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    token_url: str = Field(default="", alias="token-url")
    token_body: str = Field(default="", alias="token-body", repr=False)
    project_id: str = Field(default="", alias="project-id")
    zone: str = Field(default="", alias="zone")


class ConfigFile(BaseModel):
    """Parsed cloud provider config file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    global_: ConfigGlobal = Field(default_factory=ConfigGlobal, alias="global")


def read_config(config_path: str | None) -> ConfigFile | None:
    """Read the cloud provider config file.

    Args:
        config_path: Path to the file. Empty or None means no file was requested.

    Returns:
        The parsed ConfigFile, or None when no path was given.

    Raises:
        ConfigUnreadableError: If the file cannot be opened.
        ConfigMalformedError: If the file contents do not parse.
    """
    if not config_path:
        return None

    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        comment_prefixes=("#", ";"),
        empty_lines_in_values=False,
    )

    try:
        with open(config_path, encoding="utf-8") as f:
            try:
                parser.read_file(f, source=config_path)
            except (configparser.Error, UnicodeDecodeError) as e:
                raise ConfigMalformedError(
                    f"Couldn't read cloud provider configuration at {config_path}",
                    errors=[str(e)],
                    suggestions=[
                        "Check that the file is an INI document with a [global] section"
                    ],
                    context={"config_path": config_path},
                ) from e
    except OSError as e:
        raise ConfigUnreadableError(
            f"Couldn't open cloud provider configuration at {config_path}",
            errors=[str(e)],
            suggestions=["Check the path and the file permissions"],
            context={"config_path": config_path},
        ) from e

    values = {}
    for section in parser.sections():
        if section.lower() != GLOBAL_SECTION:
            logger.debug(f"Ignoring unknown config section [{section}]")
            continue
        for key, raw_value in parser.items(section):
            try:
                values[key] = _unquote(raw_value)
            except ValueError as e:
                raise ConfigMalformedError(
                    f"Couldn't read cloud provider configuration at {config_path}",
                    errors=[f"{section}.{key}: {e}"],
                    context={"config_path": config_path},
                ) from e

    try:
        return ConfigFile.model_validate({"global": values})
    except ValidationError as e:
        raise ConfigMalformedError(
            f"Couldn't read cloud provider configuration at {config_path}",
            errors=[err["msg"] for err in e.errors()],
            context={"config_path": config_path},
        ) from e


def _unquote(value: str) -> str:
    """Strip gcfg double quotes and resolve their escapes."""
    value = value.strip()
    if len(value) < 2 or value[0] != '"' or value[-1] != '"':
        return value

    chars = []
    inner = iter(value[1:-1])
    for ch in inner:
        if ch != "\\":
            chars.append(ch)
            continue
        escaped = next(inner, None)
        if escaped not in _QUOTE_ESCAPES:
            raise ValueError(f"invalid escape sequence in {value!r}")
        chars.append(_QUOTE_ESCAPES[escaped])
    return "".join(chars)
