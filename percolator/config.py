from contextlib import contextmanager
from pathlib import Path
from re import compile as re_compile
from typing import Any, Mapping

from pydantic import field_validator
from pydantic._internal._model_construction import ModelMetaclass
from pydantic.fields import Field
from pydantic_settings import BaseSettings
from typing_extensions import dataclass_transform

DURATION_PATTERN = re_compile(r"^\s*(\d+)\s*(d|h|mn|min|s)?\s*$")
DURATION_UNITS = {
    None: 1,
    "s": 1,
    "mn": 60,
    "min": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
}

# Dotted property keys, as they're written in a properties-style config file,
# mapped to their settings field
PROPERTY_KEYS = {
    "coffee.native": "COFFEE_NATIVE",
    "uglifyjs.path": "UGLIFYJS_PATH",
    "application.mode": "ENVIRONMENT",
    "precompiled": "USE_PRECOMPILED",
}


class ConfigMeta(ModelMetaclass):
    def __call__(cls, *args, **kwargs):
        instance = super().__call__(*args, **kwargs)
        register_config(instance)
        return instance


@dataclass_transform(kw_only_default=True, field_specifiers=(Field,))
class ConfigBase(BaseSettings, metaclass=ConfigMeta):
    """
    Base class for the running application's configuration. By convention
    all configuration parameters should be specified here in one payload.

    Users are responsible for instantiating a config with their desired
    settings. This instance will be registered into the global space so it's
    accessible to the asset controller. An error will be thrown if you attempt to
    instantiate more than one config.

    """

    # Environment flag. Only "production" switches on minification, cache headers
    # and the startup precompilation pass.
    ENVIRONMENT: str = "development"

    model_config = {"frozen": True}

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


class PercolatorConfig(ConfigBase):
    """
    Settings for the coffee compilation layer. Every field can be provided through
    the environment variable of the same name.

    """

    # Root that the compiled artifact tree mirrors. Source files have to live
    # somewhere underneath it.
    APPLICATION_ROOT: Path = Path(".")

    # Directory of .coffee sources, relative to APPLICATION_ROOT
    ASSET_ROOT: str = "public/javascripts"

    # Path segment that groups our artifacts within {tmp,precompiled}/assets
    SOURCE_CATEGORY: str = "coffeescripts"

    # Path to a native `coffee` executable. Empty means we compile in-process.
    COFFEE_NATIVE: str = ""

    # Path to an `uglifyjs` executable. Empty means we never minify.
    UGLIFYJS_PATH: str = ""

    # Serve artifacts produced by a previous `percolator precompile` run
    USE_PRECOMPILED: bool = False

    # Set while a `percolator precompile` build is running
    PRECOMPILING: bool = False

    CACHE_DURATION: str = "1h"

    # Upper bound, in seconds, for any external compiler or minifier process
    PROCESS_TIMEOUT: float = 30.0

    @field_validator("CACHE_DURATION")
    @classmethod
    def validate_cache_duration(cls, value: str) -> str:
        # Fail at startup rather than on every production request
        parse_duration(value)
        return value

    @property
    def asset_root(self) -> Path:
        return self.APPLICATION_ROOT / self.ASSET_ROOT

    @property
    def compiled_root(self) -> Path:
        mode_root = (
            "precompiled" if self.USE_PRECOMPILED or self.PRECOMPILING else "tmp"
        )
        return self.APPLICATION_ROOT / mode_root / "assets" / self.SOURCE_CATEGORY

    @property
    def cache_seconds(self) -> int:
        return parse_duration(self.CACHE_DURATION)

    @classmethod
    def from_properties(cls, properties: Mapping[str, str], **overrides: Any):
        """
        Build a config from dotted property keys, ie. `coffee.native` or `uglifyjs.path`.
        The presence of a `precompile` key switches on PRECOMPILING regardless of its value.

        """
        values: dict[str, Any] = {}
        for key, value in properties.items():
            if key == "precompile":
                values["PRECOMPILING"] = True
            elif key == "application.mode":
                values["ENVIRONMENT"] = (
                    "production"
                    if value.strip().lower() in {"prod", "production"}
                    else "development"
                )
            elif key in PROPERTY_KEYS:
                values[PROPERTY_KEYS[key]] = value.strip()

        return cls(**{**values, **overrides})


def parse_duration(duration: str) -> int:
    """
    Convert a short duration string into seconds: "10s", "30mn", "2h", "1d". A bare
    number is read as seconds.

    """
    match = DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    amount, unit = match.groups()
    return int(amount) * DURATION_UNITS[unit]


# One global config object
APP_CONFIG: ConfigBase | None = None


def register_config(config: ConfigBase):
    """
    Manually register a configuration instance into the global space. Each application
    can have a maximum of one configuration instance registered. If you attempt to
    register a second instance, an error will be thrown.

    Registration should happen automatically by initializing a new instance of your
    ConfigBase class on application start. This auto-registration is provided by
    the configuration's metaclass in ConfigMeta.

    """
    global APP_CONFIG

    if APP_CONFIG is not None and APP_CONFIG != config:
        raise ValueError("Config already registered")

    APP_CONFIG = config


def unregister_config():
    """
    Unregister the current configuration instance.

    """
    global APP_CONFIG
    APP_CONFIG = None


def get_config() -> ConfigBase:
    """
    Get the current configuration instance that's registered globally. Will
    throw an error if no configuration instance is registered.

    """
    if APP_CONFIG is None:
        raise ValueError(
            "Configuration not registered. Either:\n"
            "1. Call register_config() with your PercolatorConfig instance\n"
            "2. Make sure your PercolatorConfig is created so the ConfigMeta can auto-register"
        )

    return APP_CONFIG


@contextmanager
def register_config_in_context(config: ConfigBase):
    """
    Change the global config object to the given config object
    temporarily. Useful for unit testing.

    """
    global APP_CONFIG
    previous_config = APP_CONFIG
    APP_CONFIG = config
    try:
        yield
    finally:
        APP_CONFIG = previous_config
