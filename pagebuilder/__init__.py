"""Pagebuilder - Section Composition & Rendering Engine.

Registry of section types, the hero variant factory, the mode-dispatching
renderer and the legacy-section migration engine.
"""

__version__ = "0.1.0"
