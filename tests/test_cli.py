from conftest import make_entry
from doorways.catalog import Catalog
from doorways.cli import main


def _home(tmp_path):
    Catalog(tmp_path, [
        make_entry("1", "Installed Game", installed=True, launch_url="x://1"),
        make_entry("2", "Wishlist Game", installed=False),
    ]).save()
    return tmp_path


def test_list_installed_only_by_default(tmp_path, capsys):
    assert main(["--list"], home=_home(tmp_path)) == 0
    assert capsys.readouterr().out.splitlines() == ["Installed Game"]


def test_list_all(tmp_path, capsys):
    assert main(["--list", "-i", "false"], home=_home(tmp_path)) == 0
    assert capsys.readouterr().out.splitlines() == ["Installed Game", "Wishlist Game"]


def test_launch_unknown_title_still_exits_zero(tmp_path, capsys, fake_popen):
    assert main(["--launch", "Nope"], home=_home(tmp_path)) == 0
    assert "Unable to find game Nope" in capsys.readouterr().err
    assert fake_popen.calls == []


def test_launch_spawns_once(tmp_path, fake_popen):
    assert main(["--launch", "Installed Game"], home=_home(tmp_path)) == 0
    assert len(fake_popen.calls) == 1


def test_launch_without_target_exits_one(tmp_path, capsys, fake_popen):
    assert main(["--launch", "Wishlist Game"], home=_home(tmp_path)) == 1
    assert "missing launch_url or command" in capsys.readouterr().err


class _Provider:
    name = "Fake"

    def list_installed_and_known_titles(self):
        return [make_entry("1", "Renamed", installed=True), make_entry("3", "Aardvark")]


def test_refresh_merges_and_saves(tmp_path):
    home = _home(tmp_path)
    assert main(["--refresh"], home=home, sources=[_Provider()]) == 0
    titles = [e.title for e in Catalog.load(home).entries]
    assert titles == ["Aardvark", "Renamed", "Wishlist Game"]
