import io

import pytest

from xunicode import gen


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    for name in ("UNICODE_VERSION", "CLDR_VERSION", "UNICODE_DIR"):
        monkeypatch.delenv(name, raising=False)
    d = tmp_path / "DATA"
    gen.init(["-local", str(d), "-unicode", "15.0.0"])
    yield d
    gen.init([])


def test_init_sets_versions(data_dir):
    gen.init(["-local", str(data_dir), "-unicode", "17.0.0", "-cldr", "45"])
    assert gen.unicode_version() == "17.0.0"
    assert gen.cldr_version() == "45"


def test_environment_defaults(data_dir, monkeypatch):
    monkeypatch.setenv("UNICODE_VERSION", "17.0.0")
    gen.init(["-local", str(data_dir)])
    assert gen.unicode_version() == "17.0.0"


def test_build_tags_known_versions(data_dir):
    assert gen.build_tags() == "!go1.27"
    gen.init(["-local", str(data_dir), "-unicode", "17.0.0"])
    assert gen.build_tags() == "go1.27"


def test_build_tags_unknown_version(data_dir):
    gen.init(["-local", str(data_dir), "-unicode", "1.0.0"])
    with pytest.raises(gen.GenError):
        gen.build_tags()


@pytest.mark.parametrize("name", ["tables.go", "tables_test.go", "a/b/c.go"])
def test_file_to_pattern_round_trip(name):
    pattern = gen.file_to_pattern(name)
    assert pattern % "" == name
    assert "%s" in pattern


def test_file_to_pattern_keeps_test_suffix():
    assert (gen.file_to_pattern("x_test.go") % "15.0.0").endswith("15.0.0_test.go")


def test_tag_lines():
    assert gen.tag_lines("go1.27") == "//go:build go1.27\n"
    assert gen.tag_lines("a,b") == "//go:build a && b\n"


def test_write_go_header_and_package():
    out = io.StringIO()
    n = gen.write_go(out, "foo", "", "var x = 1\n")
    text = out.getvalue()
    assert text.startswith(gen.HEADER)
    assert "package foo\n\nvar x = 1\n" in text
    assert n == len(text)
    assert "//go:build" not in text


def test_write_go_with_tags_and_blank_lines():
    out = io.StringIO()
    gen.write_go(out, "foo", "go1.27", b"var a = 1\n\n\n\n\nvar b = 2\n")
    text = out.getvalue()
    assert gen.tag_lines("go1.27") in text
    assert "\n\n\n" not in text
    assert "var a = 1\n\nvar b = 2\n" in text


def test_write_versions(data_dir):
    gen.init(["-local", str(data_dir), "-unicode", "15.0.0", "-cldr", "45"])
    out = io.StringIO()
    gen.write_unicode_version(out)
    gen.write_cldr_version(out)
    text = out.getvalue()
    assert 'const UnicodeVersion = "15.0.0"' in text
    assert 'const CLDRVersion = "45"' in text


def test_open_local_file_and_readme(data_dir):
    assert not gen.is_local()
    target = data_dir / "15.0.0" / "ucd" / "Scripts.txt"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"0020 ; Common\n")
    with gen.open_ucd_file("Scripts.txt") as f:
        assert f.read() == b"0020 ; Common\n"
    assert gen.is_local()
    assert (data_dir / "README").exists()


def test_open_fetches_and_caches(data_dir, tmp_path, capsys):
    remote = tmp_path / "remote"
    (remote / "15.0.0" / "ucd").mkdir(parents=True)
    (remote / "15.0.0" / "ucd" / "Foo.txt").write_bytes(b"payload")
    gen.init(["-local", str(data_dir), "-unicode", "15.0.0", "-url", remote.as_uri()])
    with gen.open_ucd_file("Foo.txt") as f:
        assert f.read() == b"payload"
    assert (data_dir / "15.0.0" / "ucd" / "Foo.txt").read_bytes() == b"payload"
    assert "Fetching" in capsys.readouterr().out


def test_open_unicode_file_default_version(data_dir, tmp_path):
    remote = tmp_path / "remote"
    (remote / "emoji" / "15.0.0").mkdir(parents=True)
    (remote / "emoji" / "15.0.0" / "data.txt").write_bytes(b"emoji")
    gen.init(["-local", str(data_dir), "-unicode", "15.0.0", "-url", remote.as_uri()])
    with gen.open_unicode_file("emoji", "", "data.txt") as f:
        assert f.read() == b"emoji"


def test_open_iana_file(data_dir, tmp_path):
    remote = tmp_path / "iana_remote"
    (remote / "assignments").mkdir(parents=True)
    (remote / "assignments" / "reg.txt").write_bytes(b"registry")
    gen.init(["-local", str(data_dir), "-iana", remote.as_uri()])
    with gen.open_iana_file("assignments/reg.txt") as f:
        assert f.read() == b"registry"
    assert (data_dir / "iana" / "assignments" / "reg.txt").read_bytes() == b"registry"


def test_open_missing_remote_raises(data_dir, tmp_path):
    remote = tmp_path / "empty"
    remote.mkdir()
    gen.init(["-local", str(data_dir), "-url", remote.as_uri()])
    with pytest.raises(gen.GenError):
        gen.open_ucd_file("Missing.txt")


def test_write_go_file(tmp_path):
    target = tmp_path / "out.go"
    gen.write_go_file(str(target), "bar", "var y = 2\n")
    text = target.read_text(encoding="utf-8")
    assert text.startswith(gen.HEADER)
    assert "package bar\n\nvar y = 2\n" in text


def test_write_versioned_go_file_updates_old_tags(data_dir, tmp_path):
    old = tmp_path / "tables15.0.0.go"
    old.write_text("//go:build stale\n\npackage x\n", encoding="utf-8")
    gen.init(["-local", str(data_dir), "-unicode", "17.0.0"])
    gen.write_versioned_go_file(str(tmp_path / "tables.go"), "x", "var z = 3\n")
    new = (tmp_path / "tables17.0.0.go").read_text(encoding="utf-8")
    assert gen.tag_lines("go1.27") in new
    assert "var z = 3" in new
    assert gen.tag_lines("!go1.27") in old.read_text(encoding="utf-8")
    assert not (tmp_path / "tables.go").exists()


def test_repackage(tmp_path):
    src = tmp_path / "main.go"
    src.write_text("// leading\npackage main\n\nvar x = 1\n", encoding="utf-8")
    out = tmp_path / "pkg.go"
    gen.repackage(str(src), str(out), "other")
    text = out.read_text(encoding="utf-8")
    assert "package other\n\nvar x = 1\n" in text
    assert "package main" not in text


def test_repackage_without_main_raises(tmp_path):
    src = tmp_path / "lib.go"
    src.write_text("package lib\n\nvar x = 1\n", encoding="utf-8")
    with pytest.raises(gen.GenError):
        gen.repackage(str(src), str(tmp_path / "out.go"), "other")