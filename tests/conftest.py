"""Shared fixtures: hand-built .pptx archives and PNG snapshots."""

import io
import zipfile

import pytest
from PIL import Image

NS_P = "http://schemas.openxmlformats.org/presentationml/2006/main"
NS_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
NS_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
NS_PKG = "http://schemas.openxmlformats.org/package/2006/relationships"
IMAGE_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"

# 5 canvas pixels at 960px / 10in
EMU_5PX = 47625
EMU_4PX = 38100


def make_png(width=8, height=6, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class DeckFactory:
    """Builds minimal archives directly with zipfile, one XML part at a time."""

    # -- shapes ----------------------------------------------------------

    @staticmethod
    def xfrm(x, y, cx, cy) -> str:
        return (f'<a:xfrm><a:off x="{x}" y="{y}"/>'
                f'<a:ext cx="{cx}" cy="{cy}"/></a:xfrm>')

    def text(self, x, y, cx, cy, body, name="TextBox") -> str:
        """A text shape; ``body`` is the inner XML of txBody (paragraphs)."""
        return (f'<p:sp><p:nvSpPr><p:cNvPr id="2" name="{name}"/></p:nvSpPr>'
                f'<p:spPr>{self.xfrm(x, y, cx, cy)}</p:spPr>'
                f'<p:txBody><a:bodyPr/>{body}</p:txBody></p:sp>')

    @staticmethod
    def paragraph(*runs, algn=None) -> str:
        ppr = f'<a:pPr algn="{algn}"/>' if algn else ""
        return f"<a:p>{ppr}{''.join(runs)}</a:p>"

    @staticmethod
    def run(text, sz=None, b=None, i=None, color=None, font=None) -> str:
        attrs = ""
        if sz is not None:
            attrs += f' sz="{sz}"'
        if b is not None:
            attrs += f' b="{b}"'
        if i is not None:
            attrs += f' i="{i}"'
        inner = ""
        if color:
            inner += f'<a:solidFill><a:srgbClr val="{color}"/></a:solidFill>'
        if font:
            inner += f'<a:latin typeface="{font}"/>'
        rpr = f"<a:rPr{attrs}>{inner}</a:rPr>" if (attrs or inner) else ""
        return f"<a:r>{rpr}<a:t>{text}</a:t></a:r>"

    def picture(self, x, y, cx, cy, rid="rId2", name="Picture") -> str:
        return (f'<p:pic><p:nvPicPr><p:cNvPr id="3" name="{name}"/></p:nvPicPr>'
                f'<p:blipFill><a:blip r:embed="{rid}"/></p:blipFill>'
                f'<p:spPr>{self.xfrm(x, y, cx, cy)}</p:spPr></p:pic>')

    def slide(self, *shapes, bg="") -> str:
        return (f'<p:sld xmlns:p="{NS_P}" xmlns:a="{NS_A}" xmlns:r="{NS_R}">'
                f'<p:cSld>{bg}<p:spTree>'
                f'<p:nvGrpSpPr><p:cNvPr id="1" name=""/></p:nvGrpSpPr>'
                f'{"".join(shapes)}</p:spTree></p:cSld></p:sld>')

    @staticmethod
    def rels(*entries) -> str:
        """``entries`` are (id, target) or (id, target, mode) tuples."""
        items = []
        for entry in entries:
            rel_id, target = entry[0], entry[1]
            mode = f' TargetMode="{entry[2]}"' if len(entry) > 2 else ""
            items.append(f'<Relationship Id="{rel_id}" Type="{IMAGE_REL}" '
                         f'Target="{target}"{mode}/>')
        return f'<Relationships xmlns="{NS_PKG}">{"".join(items)}</Relationships>'

    # -- archive ---------------------------------------------------------

    def build(self, slides: dict, rels: dict | None = None,
              media: dict | None = None, width_emu=9144000,
              presentation: bool = True) -> bytes:
        """Zip ``{n: slide_xml}`` with ``{n: rels_xml}`` and ``{path: bytes}``."""
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            if presentation:
                size = f'<p:sldSz cx="{width_emu}" cy="5143500"/>' if width_emu else ""
                zf.writestr("ppt/presentation.xml",
                            f'<p:presentation xmlns:p="{NS_P}">{size}</p:presentation>')
            for n, xml in slides.items():
                zf.writestr(f"ppt/slides/slide{n}.xml", xml)
            for n, xml in (rels or {}).items():
                zf.writestr(f"ppt/slides/_rels/slide{n}.xml.rels", xml)
            for path, data in (media or {}).items():
                zf.writestr(path, data)
        return buf.getvalue()


@pytest.fixture
def deck():
    return DeckFactory()


@pytest.fixture
def png():
    return make_png()


@pytest.fixture
def rasterizer(png):
    """Synchronous stub rasterizer: every ref renders to the same PNG."""
    calls = []

    def rasterize(ref):
        calls.append(ref)
        return png

    rasterize.calls = calls
    return rasterize
