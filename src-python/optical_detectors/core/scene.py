"""
Copyright 2026 optical-detectors authors and contributors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""
import logging
import uuid as uuid_module
from typing import Any, Dict, List, Optional

from .scene_objs.base_scene_obj import BaseSceneObj, PropertyUpdate
from .scene_objs.detectors import create_detector

logger = logging.getLogger(__name__)


class Scene:
    """
    Container for the detectors of a simulation.

    The scene is the host side of the detector contracts: it resets every
    detector before a trace pass, forwards property edits and keeps track of
    whether a new trace pass is needed.

    Attributes:
        objs (list): All objects in the scene
        optical_objs (list): Only optical objects (those with is_optical=True)
        needs_retrace (bool): Set when a property edit invalidated the last trace pass
        error (str or None): Error message, e.g. an unknown key in loaded data
        warning (str or None): Warning message
        name (str or None): Optional name for the scene
    """

    def __init__(self):
        """Initialize an empty scene."""
        self.objs: List[BaseSceneObj] = []
        self.optical_objs: List[BaseSceneObj] = []
        self.needs_retrace = False
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self.name: Optional[str] = None
        self._uuid: str = str(uuid_module.uuid4())

    @property
    def uuid(self) -> str:
        return self._uuid

    def get_display_name(self) -> str:
        """
        Get a display name for the scene.

        Returns:
            The scene name if set, otherwise "Scene_" followed by a short UUID.
        """
        if self.name:
            return self.name
        return f"Scene_{self._uuid[:8]}"

    def add_object(self, obj: BaseSceneObj) -> None:
        """
        Add an object to the scene.

        Optical objects (is_optical=True) are also added to optical_objs.

        Args:
            obj: The scene object to add
        """
        self.objs.append(obj)
        if getattr(obj, 'is_optical', False):
            self.optical_objs.append(obj)
        obj.scene = self

    def remove_object(self, obj: BaseSceneObj) -> None:
        if obj in self.objs:
            self.objs.remove(obj)
        if obj in self.optical_objs:
            self.optical_objs.remove(obj)

    def clear(self) -> None:
        """Remove all objects from the scene."""
        self.objs.clear()
        self.optical_objs.clear()
        self.error = None
        self.warning = None
        self.needs_retrace = False

    def get_object_by_name(self, name: str) -> BaseSceneObj:
        """
        Find an object by its user-defined name.

        Raises:
            ValueError: If no object, or more than one, has that name.
        """
        matches = [obj for obj in self.objs if obj.name == name]
        if len(matches) == 0:
            raise ValueError(f"No object named '{name}'.")
        if len(matches) > 1:
            raise ValueError(
                f"Ambiguous: {len(matches)} objects are named '{name}'. "
                f"Use get_object_by_uuid() instead."
            )
        return matches[0]

    def get_object_by_uuid(self, uuid: str) -> BaseSceneObj:
        """
        Find an object by its UUID (exact or prefix match).

        Raises:
            ValueError: If no object matches or the prefix is ambiguous.
        """
        for obj in self.objs:
            if obj.uuid == uuid:
                return obj
        matches = [obj for obj in self.objs if obj.uuid.startswith(uuid)]
        if len(matches) == 0:
            raise ValueError(f"No object with UUID starting with '{uuid}'.")
        if len(matches) > 1:
            raise ValueError(
                f"Ambiguous: {len(matches)} objects match prefix '{uuid}'. "
                f"Provide a longer prefix."
            )
        return matches[0]

    def on_simulation_start(self) -> None:
        """Reset the accumulated signal of every optical object before a trace pass."""
        for obj in self.optical_objs:
            obj.on_simulation_start()

    def set_object_property(self, obj: BaseSceneObj, name: str, value: Any) -> PropertyUpdate:
        """
        Forward a property edit to an object.

        Raises the scene's needs_retrace flag when the object asks for a new
        trace pass. The flag stays set until acknowledge_retrace() is called.

        Returns:
            The PropertyUpdate returned by the object.
        """
        update = obj.set_property(name, value)
        if not update['isHandled']:
            logger.debug("%s: unknown property '%s'", obj.get_display_name(), name)
        if update.get('needsRetrace'):
            self.needs_retrace = True
        return update

    def acknowledge_retrace(self) -> bool:
        """
        Clear the needs_retrace flag.

        Returns:
            The value of the flag before it was cleared.
        """
        needed = self.needs_retrace
        self.needs_retrace = False
        return needed

    def serialize(self) -> Dict[str, Any]:
        """
        Serialize the configuration of every object.

        Accumulated signals are not part of the output.
        """
        json_obj: Dict[str, Any] = {'objs': [obj.serialize() for obj in self.objs]}
        if self.name:
            json_obj['name'] = self.name
        return json_obj

    def load_json(self, json_obj: Dict[str, Any]) -> None:
        """
        Replace the objects of the scene with those described by `json_obj`.

        Args:
            json_obj: A dictionary as produced by serialize().

        Raises:
            ValueError: If an object has an unknown or missing type. The scene
                        is left unchanged in that case.
        """
        loaded = []
        for obj_json in json_obj.get('objs', []):
            obj_type = obj_json.get('type')
            if obj_type is None:
                raise ValueError(f"Object without a type: {obj_json!r}")
            loaded.append(create_detector(obj_type, None, obj_json))

        self.clear()
        self.name = json_obj.get('name')
        for obj in loaded:
            self.add_object(obj)
            if obj.error:
                self.error = obj.error
        self.needs_retrace = True
        logger.info("Loaded %d objects into %s", len(loaded), self.get_display_name())

    def __repr__(self) -> str:
        return f"<Scene '{self.get_display_name()}' objs={len(self.objs)}>"
