# vsbuild/core/__init__.py
from .env import EnvVars, expand_vars
from .exceptions import AbortError, ConfigurationError, Fatal, ResolutionError, VsBuildError

__all__ = ["EnvVars", "expand_vars", "AbortError", "ConfigurationError", "Fatal", "ResolutionError", "VsBuildError"]
