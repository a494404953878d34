import os
import pytest
from pathlib import Path
from secretz.lib.adopt import AdoptionError, IsDirectoryError, IsSymlinkError, adopt

@pytest.fixture
def home(monkeypatch, tmp_path: Path) -> Path:
    h = tmp_path.resolve() / 'home'
    h.mkdir()
    monkeypatch.setenv('HOME', str(h))
    return h

@pytest.fixture
def pack(tmp_path: Path) -> Path:
    return tmp_path / 'secretz' / 'alice' / 'pack'

def tree(root: Path):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob('*')) if root.exists() else []

def test_adopt_nested_file(home: Path, pack: Path):
    src = home / 'a' / 'b' / 'secret.txt'
    src.parent.mkdir(parents=True)
    src.write_text('token')
    dest = adopt(src, pack)
    assert dest == pack / 'a' / 'b' / 'secret.txt'
    assert dest.read_text() == 'token'
    assert not src.exists()

def test_adopt_relative_path(home: Path, pack: Path, monkeypatch):
    (home / '.ssh').mkdir()
    (home / '.ssh' / 'id_ed25519').write_text('key')
    monkeypatch.chdir(home)
    assert adopt(Path('.ssh/id_ed25519'), pack) == pack / '.ssh' / 'id_ed25519'

def test_adopt_directory_refused(home: Path, pack: Path):
    d = home / 'a' / 'dir'
    d.mkdir(parents=True)
    with pytest.raises(IsDirectoryError):
        adopt(d, pack)
    assert d.is_dir()
    assert tree(pack) == []

@pytest.mark.parametrize('target_exists', [True, False])
def test_adopt_symlink_refused(home: Path, pack: Path, target_exists):
    real = home / 'a' / 'real.txt'
    real.parent.mkdir()
    if target_exists:
        real.write_text('x')
    link = home / 'a' / 'link.txt'
    link.symlink_to(real)
    with pytest.raises(IsSymlinkError):
        adopt(link, pack)
    assert os.path.islink(link)
    assert tree(pack) == []

def test_adopt_symlink_to_directory_refused(home: Path, pack: Path):
    (home / 'a' / 'dir').mkdir(parents=True)
    link = home / 'a' / 'dirlink'
    link.symlink_to(home / 'a' / 'dir')
    with pytest.raises(AdoptionError):
        adopt(link, pack)

def test_adopt_outside_home_is_noop(home: Path, pack: Path, tmp_path: Path):
    src = tmp_path / 'elsewhere' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('x')
    assert adopt(src, pack) is None
    assert src.exists()
    assert tree(pack) == []

def test_adopt_top_level_file_is_noop(home: Path, pack: Path):
    src = home / '.netrc'
    src.write_text('machine x')
    assert adopt(src, pack) is None
    assert src.exists()
    assert tree(pack) == []

def test_adopt_without_home_is_noop(pack: Path, tmp_path: Path, monkeypatch):
    def no_home():
        raise RuntimeError('Could not determine home directory.')
    monkeypatch.setattr(Path, 'home', staticmethod(no_home))
    src = tmp_path / 'a' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('x')
    assert adopt(src, pack) is None
    assert src.exists()

def test_adopt_missing_file(home: Path, pack: Path):
    with pytest.raises(FileNotFoundError):
        adopt(home / 'a' / 'ghost', pack)

def test_failed_delete_leaves_duplicate(home: Path, pack: Path, monkeypatch):
    src = home / 'a' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('keep me')
    def boom(self, *a, **kw):
        raise PermissionError('read-only')
    monkeypatch.setattr(Path, 'unlink', boom)
    with pytest.raises(PermissionError):
        adopt(src, pack)
    assert src.read_text() == 'keep me'
    assert (pack / 'a' / 'secret.txt').read_text() == 'keep me'

def test_adopt_refuses_symlink_in_pack(home: Path, pack: Path, tmp_path: Path):
    src = home / 'a' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('new')
    victim = tmp_path / 'victim.txt'
    victim.write_text('untouched')
    (pack / 'a').mkdir(parents=True)
    (pack / 'a' / 'secret.txt').symlink_to(victim)
    with pytest.raises(AdoptionError):
        adopt(src, pack)
    assert victim.read_text() == 'untouched'
    assert src.read_text() == 'new'

def test_adopt_refuses_directory_in_pack(home: Path, pack: Path):
    src = home / 'a' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('new')
    (pack / 'a' / 'secret.txt').mkdir(parents=True)
    with pytest.raises(AdoptionError):
        adopt(src, pack)
    assert src.read_text() == 'new'
    assert list((pack / 'a' / 'secret.txt').iterdir()) == []

def test_adopt_overwrites_regular_file_in_pack(home: Path, pack: Path):
    src = home / 'a' / 'secret.txt'
    src.parent.mkdir()
    src.write_text('new')
    (pack / 'a').mkdir(parents=True)
    (pack / 'a' / 'secret.txt').write_text('old')
    assert adopt(src, pack).read_text() == 'new'
    assert not src.exists()
