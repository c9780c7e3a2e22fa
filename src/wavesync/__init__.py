"""
WaveSync - Subtitle timing correction utility.

Re-times SRT subtitles against drifted audio/video using user supplied
sync points and piecewise-linear interpolation.
"""

__version__ = "0.1.0";
__author__ = "WaveSync Project";
__license__ = "MIT";
