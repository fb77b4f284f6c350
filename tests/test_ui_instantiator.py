"""Tests for declarative UI instantiation and backdrops."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from PIL import Image

from fluxhost.errors import UIParseError
from fluxhost.frames.backdrops import color_backdrop, resolve_texture, texture_backdrop
from fluxhost.frames.models import NinePatchInsets
from fluxhost.ui.instantiator import UIInstantiator, ui_files

if TYPE_CHECKING:
    from pathlib import Path

    from fluxhost.frames.registry import FrameRegistry
    from fluxhost.logging.output import OutputChannel

    from conftest import OutputCollector


@pytest.fixture
def addon_root(tmp_path: Path) -> Path:
    """Addon folder with a small panel texture."""
    root = tmp_path / "Panel"
    (root / "textures").mkdir(parents=True)
    Image.new("RGBA", (32, 32), (40, 40, 40, 255)).save(root / "textures" / "panel.png")
    return root


@pytest.fixture
def ui(frames: FrameRegistry, output: OutputChannel) -> UIInstantiator:
    return UIInstantiator(frames, output)


def write_ui(root: Path, name: str, body: str) -> Path:
    path = root / name
    path.write_text(body, encoding="utf-8")
    return path


def test_edge_size_yields_nine_patch(ui: UIInstantiator, addon_root: Path) -> None:
    """Test that a positive edgeSize selects nine-patch with uniform insets."""
    path = write_ui(
        addon_root,
        "Panel.xml",
        """<Ui>
          <Frame name="PanelFrame" width="200" height="80">
            <Anchors><Anchor point="TOPLEFT" x="10" y="20"/></Anchors>
            <Backdrop bgFile="textures/panel.png" edgeSize="8"/>
          </Frame>
        </Ui>""",
    )

    frames = ui.instantiate_file("Panel", addon_root, path)

    assert len(frames) == 1
    frame = frames[0]
    assert (frame.name, frame.x, frame.y, frame.width, frame.height) == ("PanelFrame", 10, 20, 200, 80)
    assert frame.backdrop is not None
    assert frame.backdrop.use_nine_patch
    assert frame.backdrop.insets == NinePatchInsets.uniform(8)
    assert frame.backdrop.bitmap is not None
    assert frame.backdrop.bitmap.size == (32, 32)


def test_missing_edge_size_stretches(ui: UIInstantiator, addon_root: Path) -> None:
    """Test that without edgeSize the texture is stretched."""
    path = write_ui(
        addon_root,
        "Panel.xml",
        '<Ui><Frame><Backdrop bgFile="textures\\panel.png"/></Frame></Ui>',
    )

    frame = ui.instantiate_file("Panel", addon_root, path)[0]

    assert frame.backdrop is not None
    assert frame.backdrop.mode == "stretch"
    assert not frame.backdrop.use_nine_patch


def test_size_offset_and_fontstring_forms(ui: UIInstantiator, addon_root: Path) -> None:
    """Test the nested Size, Offset/AbsDimension and Layers/FontString forms."""
    path = write_ui(
        addon_root,
        "Panel.xml",
        """<Ui xmlns="http://www.blizzard.com/wow/ui/">
          <Button hidden="true">
            <Size x="64" y="24"/>
            <Anchors><Anchor point="CENTER"><Offset><AbsDimension x="5" y="6"/></Offset></Anchor></Anchors>
            <Layers><Layer><FontString text="OK"/></Layer></Layers>
          </Button>
        </Ui>""",
    )

    frame = ui.instantiate_file("Panel", addon_root, path)[0]

    assert (frame.width, frame.height, frame.x, frame.y) == (64, 24, 5, 6)
    assert frame.text == "OK"
    assert frame.visible is False


def test_nested_frames_are_all_created(ui: UIInstantiator, addon_root: Path) -> None:
    """Test that child frame declarations become frames too."""
    path = write_ui(
        addon_root,
        "Panel.xml",
        "<Ui><Frame><Frames><Button/><CheckButton/></Frames></Frame><Texture/></Ui>",
    )

    assert len(ui.instantiate_file("Panel", addon_root, path)) == 3


def test_malformed_xml_reports_and_creates_nothing(
    ui: UIInstantiator,
    addon_root: Path,
    frames: FrameRegistry,
    collector: OutputCollector,
) -> None:
    """Test that a parse error yields zero frames and one error line."""
    path = write_ui(addon_root, "Broken.xml", "<Ui><Frame></Ui>")

    assert ui.instantiate_file("Panel", addon_root, path) == []
    assert frames.frames() == []
    assert any("Broken.xml" in line for line in collector.errors)


def test_bad_element_is_skipped(ui: UIInstantiator, addon_root: Path, collector: OutputCollector) -> None:
    """Test that one malformed element does not prevent its siblings."""
    path = write_ui(addon_root, "Panel.xml", '<Ui><Frame width="wide"/><Frame width="10"/></Ui>')

    created = ui.instantiate_file("Panel", addon_root, path)

    assert [frame.width for frame in created] == [10]
    assert len(collector.errors) == 1


@pytest.mark.parametrize("raw", ["inf", "-inf", "nan", "1e400", "1e12"])
def test_out_of_range_numbers_are_rejected(
    ui: UIInstantiator, addon_root: Path, collector: OutputCollector, raw: str
) -> None:
    """Test that non-finite or huge numbers skip the element or backdrop, never the file."""
    path = write_ui(
        addon_root,
        "Panel.xml",
        f'<Ui><Frame><Backdrop bgFile="textures/panel.png" edgeSize="{raw}"/></Frame>'
        f'<Frame width="{raw}"/><Frame width="10"/></Ui>',
    )

    created = ui.instantiate_file("Panel", addon_root, path)

    assert len(created) == 2
    assert created[0].backdrop is None
    assert created[1].width == 10
    assert len(collector.warnings) == 1
    assert len(collector.errors) == 1


def test_oversized_image_is_a_warning(
    ui: UIInstantiator, addon_root: Path, collector: OutputCollector, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that an image over the decoder's pixel limit leaves the frame without a backdrop."""
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    path = write_ui(
        addon_root,
        "Panel.xml",
        '<Ui><Frame><Backdrop bgFile="textures/panel.png"/></Frame><Frame width="10"/></Ui>',
    )

    created = ui.instantiate_file("Panel", addon_root, path)

    assert len(created) == 2
    assert created[0].backdrop is None
    assert any("panel.png" in line for line in collector.warnings)


def test_missing_texture_keeps_frame(ui: UIInstantiator, addon_root: Path, collector: OutputCollector) -> None:
    """Test that an unresolvable backdrop is a warning and the frame is still built."""
    path = write_ui(addon_root, "Panel.xml", '<Ui><Frame><Backdrop bgFile="textures/nope.png"/></Frame></Ui>')

    created = ui.instantiate_file("Panel", addon_root, path)

    assert len(created) == 1
    assert created[0].backdrop is None
    assert any("nope.png" in line for line in collector.warnings)


def test_instantiate_folder_reads_root_files_in_order(ui: UIInstantiator, addon_root: Path) -> None:
    """Test that every root-level UI file is processed, sorted by name."""
    write_ui(addon_root, "b.xml", '<Ui><Frame name="B"/></Ui>')
    write_ui(addon_root, "a.xml", '<Ui><Frame name="A"/></Ui>')
    (addon_root / "textures" / "ignored.xml").write_text('<Ui><Frame name="C"/></Ui>', encoding="utf-8")

    created = ui.instantiate_folder("Panel", addon_root)

    assert [frame.name for frame in created] == ["A", "B"]
    assert [path.name for path in ui_files(addon_root)] == ["a.xml", "b.xml"]


def test_texture_outside_folder_rejected(addon_root: Path, tmp_path: Path) -> None:
    """Test that textures cannot escape the addon folder."""
    Image.new("RGB", (4, 4)).save(tmp_path / "outside.png")

    with pytest.raises(UIParseError, match="outside"):
        resolve_texture(addon_root, "../outside.png")


def test_unreadable_image_raises(addon_root: Path) -> None:
    """Test that a file that is not an image is a UIParseError."""
    (addon_root / "textures" / "fake.png").write_text("not an image", encoding="utf-8")

    with pytest.raises(UIParseError, match="Unreadable"):
        texture_backdrop(addon_root, "textures/fake.png")


def test_color_backdrop_names() -> None:
    """Test colour names and invalid colours."""
    assert color_backdrop("blue").color == (0, 0, 255, 255)
    with pytest.raises(ValueError):
        color_backdrop("not-a-colour")
