import io

from PIL import Image

from conftest import make_entry
from doorways.catalog import Catalog
from doorways.images import MAX_TILE_HEIGHT, MAX_TILE_WIDTH, TileImages, download_img, render_tile
from doorways.models import ImageSource


def _png(path, w, h):
    Image.new("RGB", (w, h), (12, 34, 56)).save(path, format="PNG")
    return path


def test_render_tile_fits_box(tmp_path):
    data = render_tile(_png(tmp_path / "wide.png", 800, 400))
    with Image.open(io.BytesIO(data)) as im:
        assert im.size == (MAX_TILE_WIDTH, MAX_TILE_HEIGHT // 2)


class _Resp:
    def __init__(self, content):
        self.content = content

    def raise_for_status(self):
        pass


class _Session:
    def __init__(self, content):
        self.content = content
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        return _Resp(self.content)


def test_download_img_fetches_once(tmp_path):
    buf = io.BytesIO()
    Image.new("RGB", (10, 10)).save(buf, format="PNG")
    session = _Session(buf.getvalue())
    e = make_entry("1", image_src=ImageSource.url("http://cdn.example/apps/1/header.png?x=1"))

    p1 = download_img(e, tmp_path / "images", session)
    p2 = download_img(e, tmp_path / "images", session)

    assert p1 == p2 == tmp_path / "images" / "header.png"
    assert session.urls == ["http://cdn.example/apps/1/header.png?x=1"]


def test_tiles_cache_until_sort_and_hide_broken(tmp_path):
    good = _png(tmp_path / "good.png", 100, 100)
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    cat = Catalog(tmp_path, [
        make_entry("g", "A Good", image_src=ImageSource.path(str(good))),
        make_entry("b", "B Bad", image_src=ImageSource.path(str(bad))),
    ])
    tiles = TileImages(cat)

    assert tiles.load_all() == 1
    assert cat.entries[1].hidden and not cat.entries[0].hidden
    assert cat.entries[0].image_path == str(good)

    good.unlink()
    assert tiles.get(0) is not None      # cached
    cat.sort()
    assert tiles.get(0) is None          # rebuilt after sort, file now gone
