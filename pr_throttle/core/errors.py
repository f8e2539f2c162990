"""
Error taxonomy.

ConfigError is always fatal and raised before any decision logic runs.
UpstreamQueryError and ActionError are only raised by the gate runner, after
a fatal step failed and skip_on_failure is off. Gateway calls themselves never
raise for HTTP or transport failures; they return StepResult values.
"""

class ConfigError(ValueError):
    """Malformed policy or missing required input."""

class AuthError(RuntimeError):
    """No usable GitHub credential."""

class UpstreamQueryError(RuntimeError):
    """Count search or team membership lookup failed."""

class ActionError(RuntimeError):
    """A close or revert-to-draft call failed."""

class EventParseError(ValueError):
    """Event payload could not be read or is not a JSON object."""
