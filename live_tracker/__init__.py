"""
Live Tracker — хаб присутствия и трансляции геолокации в реальном времени.
"""

__version__ = "1.0.0"
