"""Real-time digital twin of a loaded concrete beam."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("beamtwin")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
