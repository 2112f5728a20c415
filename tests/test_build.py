import pytest

from badware.build import build_site
from badware.content import ContentError


def test_build_site_writes_public_files_and_feed(tmp_path):
    (tmp_path / "public" / "img").mkdir(parents=True)
    (tmp_path / "public" / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (tmp_path / "public" / "img" / "logo.svg").write_text("<svg/>", encoding="utf-8")
    blog = tmp_path / "content" / "blog"
    blog.mkdir(parents=True)
    (blog / "hello-world.md").write_text("---\ntitle: Hello\n---\n", encoding="utf-8")
    (blog / "draft.md").write_text("---\ntitle: Draft\ndraft: true\n---\n", encoding="utf-8")

    stale = tmp_path / "dist" / "stale.txt"
    stale.parent.mkdir()
    stale.write_text("old", encoding="utf-8")

    result = build_site(tmp_path)
    out = tmp_path / "dist"
    assert result.output_dir == out
    assert [e.id for e in result.entries] == ["hello-world"]
    assert sorted(p.relative_to(out).as_posix() for p in result.files) == [
        "img/logo.svg",
        "index.html",
        "rss.xml",
    ]
    assert not stale.exists()
    rss = (out / "rss.xml").read_text(encoding="utf-8")
    assert "https://johngithubby.github.io/badware/blog/hello-world/" in rss
    assert "Draft" not in rss


def test_build_site_with_drafts_and_no_public(tmp_path):
    blog = tmp_path / "content" / "blog"
    blog.mkdir(parents=True)
    (blog / "draft.md").write_text("---\ntitle: Draft\ndraft: true\n---\n", encoding="utf-8")
    (tmp_path / "badware.yaml").write_text("output_dir: site-out\n", encoding="utf-8")

    result = build_site(tmp_path, include_drafts=True)
    assert result.output_dir == tmp_path / "site-out"
    assert [e.id for e in result.entries] == ["draft"]
    assert (tmp_path / "site-out" / "rss.xml").exists()


def test_build_site_without_content(tmp_path):
    result = build_site(tmp_path)
    assert result.entries == []
    rss = (result.output_dir / "rss.xml").read_text(encoding="utf-8")
    assert "<item>" not in rss


def test_build_site_reports_unreadable_content(tmp_path):
    blog = tmp_path / "content" / "blog"
    blog.mkdir(parents=True)
    bad = blog / "broken.md"
    bad.write_bytes(b"---\ntitle: Broken\n---\n\xff\xfe")

    with pytest.raises(ContentError) as exc_info:
        build_site(tmp_path)

    assert exc_info.value.source_path == bad
