"""kindcheck — machine-checked architectural rules for TypeScript codebases."""

__version__ = "0.1.0"

from kindcheck.binder import BinderResult, Symbol, bind  # noqa: E402
from kindcheck.checker import (  # noqa: E402
    Diagnostic,
    RuleCode,
    Session,
    Violation,
    check,
    check_artifact,
)
from kindcheck.config import KindCheckConfig, load_config, parse_config  # noqa: E402
from kindcheck.program import Program, SourceArtifact  # noqa: E402

__all__ = [
    "BinderResult",
    "Diagnostic",
    "KindCheckConfig",
    "Program",
    "RuleCode",
    "Session",
    "SourceArtifact",
    "Symbol",
    "Violation",
    "__version__",
    "bind",
    "check",
    "check_artifact",
    "load_config",
    "parse_config",
]
