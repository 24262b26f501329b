"""
CityList API: a REST service over a static dataset of world cities.

All functionality lives in the ``app`` subpackage; ``cli`` is the
command line launcher.
"""

__version__ = "0.0.1"
