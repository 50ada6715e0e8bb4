"""graphsim package entrypoint."""

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    __version__ = "0.0.0"

_SUBMODULES = {
    "correction",
    "generate",
    "metrics",
    "sigma",
    "state",
    "structure",
}

_EXPORTS = {
    "InputFormatError": "errors",
    "StructuralVariant": "structure",
    "make_state_matrix": "state",
    "synthesize_sigma": "sigma",
    "validate_and_correct": "correction",
    "generate_samples": "generate",
    "generate_expression": "generate",
    "generate_expression_mat": "generate",
}

__all__ = sorted(_SUBMODULES) + sorted(_EXPORTS) + ["__version__"]


def __getattr__(name):
    if name in _SUBMODULES:
        module = import_module(f"graphsim.{name}")
        globals()[name] = module
        return module
    if name in _EXPORTS:
        value = getattr(import_module(f"graphsim.{_EXPORTS[name]}"), name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
