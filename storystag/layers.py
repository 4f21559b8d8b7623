"""Ordered stack of paintable surfaces flattened into one destination.

Each layer owns an RGBA surface of the stack's size. Flattening composites
the visible layers in ascending ``z_index`` order, top-most last. A stack can
be serialized to JSON, with every surface stored as a PNG data URL next to
its order index, and restored from it.
"""

from __future__ import annotations

import base64
import io
import json
import uuid
from dataclasses import dataclass

import PIL.Image

from .loader import decode_data_url, decode_image

BACKGROUND_LAYER_ID = "background"


@dataclass
class Layer:
    """A named surface within a :class:`LayerStack`.

    Attributes:
        id: Unique layer id
        name: Display name
        surface: RGBA surface, same size as the stack
        z_index: Stacking position, higher values are drawn later
        visible: Whether the layer takes part in flattening
    """
    id: str
    name: str
    surface: PIL.Image.Image
    z_index: int
    visible: bool = True


class LayerStack:
    """Manages the layers of one composited surface.

    Example:
        stack = LayerStack(1080, 1080, background=(255, 255, 255, 255))
        content = stack.add_layer(name="Frame")
        content.surface.paste(image, (0, 135))
        output = stack.flatten()
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: tuple[int, int, int, int] = (0, 0, 0, 0),
    ) -> None:
        """
        :param width: Surface width in pixels
        :param height: Surface height in pixels
        :param background: Fill color of the background layer
        """
        self.width = width
        self.height = height
        self._layers: dict[str, Layer] = {}
        self._init_layer(BACKGROUND_LAYER_ID, "Background", 0, background)

    def _init_layer(
        self,
        layer_id: str,
        name: str,
        z_index: int,
        fill: tuple[int, int, int, int] = (0, 0, 0, 0),
    ) -> Layer:
        surface = PIL.Image.new("RGBA", (self.width, self.height), fill)
        layer = Layer(id=layer_id, name=name, surface=surface, z_index=z_index)
        self._layers[layer_id] = layer
        return layer

    @property
    def layers(self) -> list[Layer]:
        """All layers sorted by z_index."""
        return sorted(self._layers.values(), key=lambda layer: layer.z_index)

    @property
    def background(self) -> Layer:
        return self._layers[BACKGROUND_LAYER_ID]

    def get_layer(self, layer_id: str) -> Layer | None:
        return self._layers.get(layer_id)

    def add_layer(self, name: str = "New Layer", layer_id: str | None = None) -> Layer:
        """Adds a transparent layer on top of all existing ones.

        :param name: Display name
        :param layer_id: Layer id, a random UUID if omitted
        :return: The new layer
        """
        layer_id = layer_id or str(uuid.uuid4())
        if layer_id in self._layers:
            raise ValueError(f"Layer {layer_id} already exists")
        z_index = max(layer.z_index for layer in self._layers.values()) + 1
        return self._init_layer(layer_id, name, z_index)

    def remove_layer(self, layer_id: str) -> bool:
        """Removes a layer. The background layer can not be removed.

        :return: True if the layer was found and removed
        """
        if layer_id == BACKGROUND_LAYER_ID:
            return False
        return self._layers.pop(layer_id, None) is not None

    def toggle_visibility(self, layer_id: str) -> None:
        layer = self._layers.get(layer_id)
        if layer is not None:
            layer.visible = not layer.visible

    def resize(self, width: int, height: int) -> None:
        """Resizes all layers, keeping their content anchored top-left."""
        self.width = width
        self.height = height
        for layer in self._layers.values():
            resized = PIL.Image.new("RGBA", (width, height), (0, 0, 0, 0))
            resized.paste(layer.surface, (0, 0))
            layer.surface = resized

    def render_to(self, target: PIL.Image.Image) -> None:
        """Clears ``target`` and composites all visible layers onto it.

        :param target: Destination surface of the stack's size
        """
        if target.size != (self.width, self.height):
            raise ValueError(
                f"Target size {target.size} does not match stack size "
                f"{(self.width, self.height)}"
            )
        target.paste(self.flatten().convert(target.mode), (0, 0))

    def flatten(self) -> PIL.Image.Image:
        """Composites all visible layers into a new RGBA image.

        :return: The flattened surface
        """
        output = PIL.Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        for layer in self.layers:
            if layer.visible:
                output.alpha_composite(layer.surface)
        return output

    def serialize(self) -> str:
        """Serializes all layers to a JSON string.

        :return: JSON mapping layer ids to metadata and PNG data URLs
        """
        data = {}
        for layer in self.layers:
            buffer = io.BytesIO()
            layer.surface.save(buffer, format="PNG")
            encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
            data[layer.id] = {
                "id": layer.id,
                "name": layer.name,
                "visible": layer.visible,
                "imageData": f"data:image/png;base64,{encoded}",
                "zIndex": layer.z_index,
            }
        return json.dumps({"width": self.width, "height": self.height, "layers": data})

    @classmethod
    def deserialize(cls, serialized: str) -> LayerStack:
        """Restores a stack created by :meth:`serialize`.

        :param serialized: The JSON string
        :return: The restored stack
        """
        data = json.loads(serialized)
        stack = cls(data["width"], data["height"])
        stack._layers.clear()
        for entry in data["layers"].values():
            surface = decode_image(decode_data_url(entry["imageData"]), entry["id"])
            stack._layers[entry["id"]] = Layer(
                id=entry["id"],
                name=entry["name"],
                surface=surface,
                z_index=entry["zIndex"],
                visible=entry.get("visible", True),
            )
        if BACKGROUND_LAYER_ID not in stack._layers:
            stack._init_layer(BACKGROUND_LAYER_ID, "Background", 0)
        return stack
