"""
Exception hierarchy shared by the model and controller layers.
"""


class BeamTwinError(Exception):
    """Base class for all errors raised by beamtwin."""


class ConfigError(BeamTwinError, ValueError):
    """
    Invalid configuration: malformed scaler blob, missing key, zero scale
    factor or a non-physical material constant.
    """


class InferenceError(BeamTwinError, RuntimeError):
    """The inference engine is unavailable or rejected the batch."""
