"""Public API for :mod:`rowbind`."""

from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING
import tomllib

if TYPE_CHECKING:
    from rowbind.binding import Binding, BindingResolver, BindingSet, resolve_bindings
    from rowbind.directives import (
        BooleanString,
        Convert,
        EnumOptions,
        EnumSelector,
        Format,
        LowerCase,
        NullString,
        Parsed,
        Replace,
        Trim,
        UpperCase,
        headers,
    )
    from rowbind.exceptions import (
        ConfigurationError,
        ConversionError,
        InstantiationError,
        RowbindError,
        RuntimeTypeError,
    )
    from rowbind.layout import ParsingContext
    from rowbind.materializer import RecordMaterializer
    from rowbind.processor import ObjectReader, ObjectWriter
    from rowbind.settings import Settings


def _pyproject_version() -> str | None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    try:
        parsed = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        version = parsed.get("project", {}).get("version")
        if isinstance(version, str) and version:
            return version
    except (FileNotFoundError, OSError, tomllib.TOMLDecodeError):
        return None
    return None


def _resolve_version() -> str:
    # Prefer the local pyproject when running from a source checkout/editable install.
    version = _pyproject_version()
    if version is not None:
        return version

    try:
        return metadata.version("rowbind")
    except metadata.PackageNotFoundError:  # pragma: no cover
        return "unknown"


__version__ = _resolve_version()

_EXPORTS = {
    "Binding": ("rowbind.binding", "Binding"),
    "BindingResolver": ("rowbind.binding", "BindingResolver"),
    "BindingSet": ("rowbind.binding", "BindingSet"),
    "resolve_bindings": ("rowbind.binding", "resolve_bindings"),
    "BooleanString": ("rowbind.directives", "BooleanString"),
    "Convert": ("rowbind.directives", "Convert"),
    "EnumOptions": ("rowbind.directives", "EnumOptions"),
    "EnumSelector": ("rowbind.directives", "EnumSelector"),
    "Format": ("rowbind.directives", "Format"),
    "LowerCase": ("rowbind.directives", "LowerCase"),
    "NullString": ("rowbind.directives", "NullString"),
    "Parsed": ("rowbind.directives", "Parsed"),
    "Replace": ("rowbind.directives", "Replace"),
    "Trim": ("rowbind.directives", "Trim"),
    "UpperCase": ("rowbind.directives", "UpperCase"),
    "headers": ("rowbind.directives", "headers"),
    "ConfigurationError": ("rowbind.exceptions", "ConfigurationError"),
    "ConversionError": ("rowbind.exceptions", "ConversionError"),
    "InstantiationError": ("rowbind.exceptions", "InstantiationError"),
    "RowbindError": ("rowbind.exceptions", "RowbindError"),
    "RuntimeTypeError": ("rowbind.exceptions", "RuntimeTypeError"),
    "ParsingContext": ("rowbind.layout", "ParsingContext"),
    "RecordMaterializer": ("rowbind.materializer", "RecordMaterializer"),
    "ObjectReader": ("rowbind.processor", "ObjectReader"),
    "ObjectWriter": ("rowbind.processor", "ObjectWriter"),
    "Settings": ("rowbind.settings", "Settings"),
}


def __getattr__(name: str):
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = __import__(module_name, fromlist=[attr_name])
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_EXPORTS.keys()))


__all__ = [*_EXPORTS, "__version__"]
