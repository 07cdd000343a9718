class ConfigurationError(ValueError):
    """Invalid vehicle profile or planner setup. Always surfaced to the caller."""


class ExternalLookupFailure(RuntimeError):
    """Station provider could not answer (bad status, transport error, timeout, bad payload)."""
