"""Version information for CurvatureFit."""

VERSION = (0, 1, 0)
__version__ = '.'.join(str(part) for part in VERSION)
