"""
Apollo - Interactive lesson viewer for structured course content.

Subpackages:
- schemas: content blocks, curriculum tree and progress models
- viewer: section, code, diagram and exercise rendering
- classroom: navigation, progress synchronization and session state
"""

__version__ = "0.1.0"
