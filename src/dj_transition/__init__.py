"""
DJ Transition Generator
Tempo-matched crossfade between two tracks
"""

__version__ = "1.0.0"
