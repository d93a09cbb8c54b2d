"""
Pointer and keyboard interaction.

:py:class:`InteractionController` turns pointer events in logical canvas
coordinates into scene operations. It is an explicit state machine:

- :py:class:`Idle`: no drag in progress
- :py:class:`DraggingText`: a text layer follows the pointer
- :py:class:`DraggingBackground`: a background image layer follows the pointer

A drag keeps the offset between the pointer and the layer origin captured
at pointer-down, so positions are never clamped to the canvas and a layer
can be dragged partly or fully off-canvas.
"""

import logging
from typing import Optional, Union

from attrs import define

from textbehind.api.scene import Scene
from textbehind.constants import DELETE_KEYS, Cursor, LayerKind
from textbehind.geometry import Point
from textbehind.hittest import pick_at

logger = logging.getLogger(__name__)


@define(frozen=True)
class Idle:
    pass


@define(frozen=True)
class DraggingText:
    layer_id: str
    offset: Point


@define(frozen=True)
class DraggingBackground:
    layer_id: str
    offset: Point


State = Union[Idle, DraggingText, DraggingBackground]

IDLE = Idle()


class InteractionController(object):
    """
    Interaction state machine bound to a scene.

    :param scene: :py:class:`~textbehind.api.scene.Scene` to operate on.
    """

    def __init__(self, scene: Scene):
        self.scene = scene
        self._state: State = IDLE
        self._cursor = Cursor.CROSSHAIR

    def __repr__(self):
        return "%s(state=%s)" % (self.__class__.__name__, type(self._state).__name__)

    @property
    def state(self) -> State:
        return self._state

    @property
    def dragging(self) -> bool:
        return not isinstance(self._state, Idle)

    @property
    def cursor(self) -> Cursor:
        """Cursor feedback for the last pointer event."""
        return self._cursor

    def pointer_down(self, point: Point) -> State:
        """
        Select the layer under ``point`` and start dragging it, or clear the
        selection when nothing is hit.
        """
        x, y = point
        pick = pick_at(point, self.scene)
        if pick.kind is LayerKind.TEXT:
            layer = self.scene.select_text(pick.id)  # type: ignore[arg-type]
            self._state = DraggingText(layer.id, (x - layer.x, y - layer.y))
        elif pick.kind is LayerKind.BACKGROUND:
            background = self.scene.select_background(pick.id)  # type: ignore[arg-type]
            self._state = DraggingBackground(
                background.id, (x - background.x, y - background.y)
            )
        else:
            self.scene.clear_selection()
            self._state = IDLE
        self._cursor = Cursor.GRABBING if self.dragging else Cursor.CROSSHAIR
        return self._state

    def pointer_move(self, point: Point) -> Cursor:
        """
        Move the dragged layer to ``point`` minus the drag offset.

        :return: :py:class:`~textbehind.constants.Cursor` to display.
        """
        state = self._state
        if isinstance(state, (DraggingText, DraggingBackground)):
            x = point[0] - state.offset[0]
            y = point[1] - state.offset[1]
            try:
                if isinstance(state, DraggingText):
                    self.scene.move_text(state.layer_id, x, y)
                else:
                    self.scene.move_background_image(state.layer_id, x, y)
            except KeyError:
                logger.debug("Dragged layer %s is gone" % state.layer_id)
                self._state = IDLE
            else:
                self._cursor = Cursor.GRABBING
                return self._cursor

        if pick_at(point, self.scene):
            self._cursor = Cursor.GRAB
        else:
            self._cursor = Cursor.CROSSHAIR
        return self._cursor

    def pointer_up(self, point: Optional[Point] = None) -> State:
        """End a drag; the selection is kept."""
        self._state = IDLE
        if point is not None and pick_at(point, self.scene):
            self._cursor = Cursor.GRAB
        else:
            self._cursor = Cursor.CROSSHAIR
        return self._state

    def pointer_leave(self) -> State:
        """End a drag when the pointer leaves the canvas."""
        self._state = IDLE
        self._cursor = Cursor.CROSSHAIR
        return self._state

    def key_down(self, key: str) -> bool:
        """
        Handle a key press.

        A delete key removes the selected text layer, but only while its
        property editor is closed so that deleting characters in the editor
        does not delete the layer.

        :return: True if the key changed the scene.
        """
        if key not in DELETE_KEYS:
            return False
        selection = self.scene.selection
        if selection.text_id is None or selection.text_editor_open:
            return False
        self._forget(selection.text_id)
        self.scene.delete_text(selection.text_id)
        return True

    def delete_selected(self) -> bool:
        """Delete whichever layer is selected. Returns False if none is."""
        selection = self.scene.selection
        if selection.text_id is not None:
            self._forget(selection.text_id)
            self.scene.delete_text(selection.text_id)
            return True
        if selection.background_id is not None:
            self._forget(selection.background_id)
            self.scene.delete_background_image(selection.background_id)
            return True
        return False

    def _forget(self, layer_id: str) -> None:
        if getattr(self._state, "layer_id", None) == layer_id:
            self._state = IDLE
