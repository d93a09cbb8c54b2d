"""
High-level API for composing text behind the subject of a photo.

This subpackage provides the user-facing API for text-behind. A scene holds
the original photo, the foreground cut-out and the editable layers; the
editor binds a scene to pointer input, interactive rendering and export.

The main entry point is :py:class:`~textbehind.api.editor.Editor`.

Key modules:

- :py:mod:`textbehind.api.editor`: Editor runtime and canvas sizing
- :py:mod:`textbehind.api.scene`: Scene, selection and change notification
- :py:mod:`textbehind.api.layers`: Text and background image layers
- :py:mod:`textbehind.api.resources`: Asynchronously decoded images and the
  image cache
- :py:mod:`textbehind.api.upload`: Upload validation
- :py:mod:`textbehind.api.protocols`: Interfaces of external collaborators

Example usage::

    from textbehind import Editor

    editor = Editor.from_images(photo, cutout)
    layer = editor.add_text(text='pov')
    editor.scene.update_text(layer.id, font_size=96, color='#ffcc00')
    editor.redraw().show()
"""
