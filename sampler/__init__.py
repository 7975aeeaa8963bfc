"""
File Compare Sampler.

Checks whether large files or directory trees are identical by comparing
the start, the end and evenly spaced interior sections of each file.
"""

APP_NAME = "FileCompareSampler"
APP_DISPLAY_NAME = "File Compare Sampler"
APP_VERSION = "1.2.0"

__version__ = APP_VERSION
