"""
Tests for the LayerStack class.
"""

import PIL.Image
import pytest

from storystag import LayerStack
from storystag.layers import BACKGROUND_LAYER_ID


class TestLayerStackManagement:
    """Tests for adding, removing and ordering layers."""

    def test_starts_with_background(self):
        stack = LayerStack(10, 10)
        assert [layer.id for layer in stack.layers] == [BACKGROUND_LAYER_ID]

    def test_add_layer_goes_on_top(self):
        stack = LayerStack(10, 10)
        first = stack.add_layer("A")
        second = stack.add_layer("B")
        assert second.z_index > first.z_index > stack.background.z_index
        assert stack.layers[-1] is second

    def test_duplicate_id_rejected(self):
        stack = LayerStack(10, 10)
        stack.add_layer("A", layer_id="a")
        with pytest.raises(ValueError):
            stack.add_layer("A again", layer_id="a")

    def test_background_cannot_be_removed(self):
        stack = LayerStack(10, 10)
        assert stack.remove_layer(BACKGROUND_LAYER_ID) is False
        layer = stack.add_layer("A")
        assert stack.remove_layer(layer.id) is True
        assert stack.get_layer(layer.id) is None
        assert stack.remove_layer(layer.id) is False


class TestLayerStackFlatten:
    """Tests for flattening layers."""

    def test_top_most_layer_wins(self):
        stack = LayerStack(4, 4, background=(255, 255, 255, 255))
        red = stack.add_layer("red")
        red.surface.paste((255, 0, 0, 255), (0, 0, 4, 4))
        blue = stack.add_layer("blue")
        blue.surface.paste((0, 0, 255, 255), (0, 0, 2, 2))
        output = stack.flatten()
        assert output.getpixel((0, 0)) == (0, 0, 255, 255)
        assert output.getpixel((3, 3)) == (255, 0, 0, 255)

    def test_hidden_layers_are_skipped(self):
        stack = LayerStack(4, 4, background=(255, 255, 255, 255))
        red = stack.add_layer("red")
        red.surface.paste((255, 0, 0, 255), (0, 0, 4, 4))
        stack.toggle_visibility(red.id)
        assert stack.flatten().getpixel((1, 1)) == (255, 255, 255, 255)
        stack.toggle_visibility(red.id)
        assert stack.flatten().getpixel((1, 1)) == (255, 0, 0, 255)

    def test_render_to_replaces_target(self):
        stack = LayerStack(4, 4, background=(0, 255, 0, 255))
        target = PIL.Image.new("RGB", (4, 4), (9, 9, 9))
        stack.render_to(target)
        assert target.getpixel((2, 2)) == (0, 255, 0)

    def test_render_to_size_mismatch(self):
        stack = LayerStack(4, 4)
        with pytest.raises(ValueError):
            stack.render_to(PIL.Image.new("RGB", (5, 4)))

    def test_resize_keeps_content(self):
        stack = LayerStack(4, 4, background=(0, 0, 0, 255))
        stack.resize(8, 6)
        output = stack.flatten()
        assert output.size == (8, 6)
        assert output.getpixel((1, 1)) == (0, 0, 0, 255)
        assert output.getpixel((7, 5)) == (0, 0, 0, 0)


class TestLayerStackSerialization:
    """Tests for serialize() / deserialize()."""

    def test_restores_layers_and_pixels(self):
        stack = LayerStack(6, 5, background=(255, 255, 255, 255))
        ink = stack.add_layer("Ink", layer_id="ink")
        ink.surface.paste((10, 20, 30, 255), (1, 1, 3, 3))
        stack.toggle_visibility("ink")

        restored = LayerStack.deserialize(stack.serialize())

        assert (restored.width, restored.height) == (6, 5)
        assert [layer.id for layer in restored.layers] == [BACKGROUND_LAYER_ID, "ink"]
        assert restored.get_layer("ink").visible is False
        assert restored.get_layer("ink").z_index == ink.z_index
        assert list(restored.get_layer("ink").surface.getdata()) == list(ink.surface.getdata())
