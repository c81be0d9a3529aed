"""
Selection and hover state for the map highlight overlay.

At most one tract is selected and at most one is hovered; the two are
independent and may name the same tract. The rendering layer calls the
``on_*`` handlers from its pointer/keyboard events and reads the state back
to filter its highlight layer.

Known limitation: identifiers are assumed unique. Two tracts sharing an id
highlight together.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Set

from loguru import logger


@dataclass(frozen=True)
class SelectionState:
    selected_id: Optional[str] = None
    hovered_id: Optional[str] = None


class SelectionController:
    """Single-selection / single-hover state machine."""

    def __init__(self):
        self._selected_id: Optional[str] = None
        self._hovered_id: Optional[str] = None

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def hovered_id(self) -> Optional[str]:
        return self._hovered_id

    @property
    def state(self) -> SelectionState:
        return SelectionState(selected_id=self._selected_id, hovered_id=self._hovered_id)

    def hover(self, tract_id: str) -> None:
        self._hovered_id = tract_id
        logger.trace(f"hover -> {tract_id}")

    def unhover(self) -> None:
        """Clear the hover, except while the hovered tract is the selected one."""
        if self._selected_id is not None and self._hovered_id == self._selected_id:
            logger.trace(f"unhover ignored, {self._hovered_id} is selected")
            return
        self._hovered_id = None
        logger.trace("unhover")

    def select(self, tract_id: str) -> None:
        self._selected_id = tract_id
        logger.debug(f"🖱️ Selected tract {tract_id}")

    def clear(self) -> None:
        self._selected_id = None
        self._hovered_id = None
        logger.debug("🖱️ Selection cleared")

    # Event handlers, one per rendering-layer event
    def on_hover(self, tract_id: str) -> None:
        self.hover(tract_id)

    def on_unhover(self) -> None:
        self.unhover()

    def on_select(self, tract_id: str) -> None:
        self.select(tract_id)

    def on_background_click(self) -> None:
        self.clear()

    def on_escape_key(self) -> None:
        self.clear()

    def on_key(self, key: str) -> None:
        if key == "Escape":
            self.on_escape_key()

    def highlighted_ids(self) -> List[str]:
        """Ids the highlight overlay should show, selection first."""
        ids: List[str] = []
        seen: Set[str] = set()
        for tract_id in (self._selected_id, self._hovered_id):
            if tract_id is not None and tract_id not in seen:
                ids.append(tract_id)
                seen.add(tract_id)
        return ids

    def highlight_filter(self, uid_property: str = "__uid") -> List[Any]:
        """Mapbox GL filter expression matching the highlighted tracts."""
        ids = self.highlighted_ids()
        if not ids:
            return ["==", ["get", uid_property], ""]
        if len(ids) == 1:
            return ["==", ["get", uid_property], ids[0]]
        return ["in", ["get", uid_property], ["literal", ids]]
