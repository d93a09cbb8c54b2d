"""
Composite module for scene rendering.

This subpackage rasterizes a :py:class:`~textbehind.api.scene.Scene` onto a
:py:class:`~textbehind.composite.surface.Surface`. Layers paint in a fixed
order: the original photo, background image layers, text layers and finally
the foreground cutout, which puts the subject in front of the text.

Key modules:

- :py:mod:`textbehind.composite.renderer`: The layered renderer
- :py:mod:`textbehind.composite.surface`: Pillow drawing target with a
  transform stack
- :py:mod:`textbehind.composite.vector`: Dashed selection outlines drawn with
  ``aggdraw``

Example usage::

    from textbehind.composite import Surface, render
    from textbehind.constants import RenderMode

    surface = Surface(scene.width, scene.height, scale=2)
    render(surface, scene, RenderMode.EXPORT)
    surface.image.save('output.png')
"""

from textbehind.composite.renderer import render, render_image
from textbehind.composite.surface import Surface

__all__ = [
    "Surface",
    "render",
    "render_image",
]
