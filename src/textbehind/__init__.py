"""
text-behind: Python package for placing text behind the subject of a photo.

This package composes a photo, a cut-out of its foreground subject, text
layers and auxiliary background images on a 2D canvas. The subject is
always drawn last, so text appears to sit behind it.

Basic usage::

    import asyncio
    from textbehind import Editor

    async def main():
        editor = await Editor.open('photo.jpg', 'subject.png')
        editor.add_text(text='pov', font_size=72)
        result = await editor.export()
        result.save('.')

    asyncio.run(main())

Architecture:

- :py:mod:`textbehind.api`: Scene model and the editor (primary interface)
- :py:mod:`textbehind.composite`: Layered rendering engine
- :py:mod:`textbehind.hittest`: Layer picking, including rotated images
- :py:mod:`textbehind.controller`: Drag and selection state machine
- :py:mod:`textbehind.export`: High-resolution PNG export
"""

from textbehind.api.editor import Editor
from textbehind.api.scene import Scene
from textbehind.version import __version__

__all__ = ["Editor", "Scene", "__version__"]
