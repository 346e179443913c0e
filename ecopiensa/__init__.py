"""
Ecopiensa - a layered raster compositing editor.

This package contains the editor modules:
- editor: Layer model, compositor, interaction controller and export
- services: Application services (config, logging)
- ui: Canvas view widget that feeds pointer events to the editor
"""

__version__ = "0.1.0"
