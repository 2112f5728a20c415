from pathlib import Path

import pytest

from badware.config import load_config
from badware.content import (
    ContentCollections,
    ContentEntry,
    ContentError,
    entry_id,
    extract_frontmatter,
)
from badware.protocols import CollectionSource


def write_post(root: Path, name: str, text: str) -> Path:
    path = root / "content" / "blog" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_extract_frontmatter():
    data, body = extract_frontmatter("---\ntitle: Hi\npubDate: 2024-01-02\n---\nBody\n")
    assert data["title"] == "Hi"
    assert str(data["pubDate"]) == "2024-01-02"
    assert body == "Body\n"

    assert extract_frontmatter("No frontmatter") == ({}, "No frontmatter")
    # malformed yaml and non-mapping frontmatter are ignored
    broken = "---\ntitle: [unclosed\n---\nBody"
    assert extract_frontmatter(broken) == ({}, broken)
    listed = "---\n- a\n- b\n---\nBody"
    assert extract_frontmatter(listed) == ({}, listed)


def test_entry_id():
    assert entry_id(Path("hello-world.md")) == "hello-world"
    assert entry_id(Path("Hello World.md")) == "hello-world"
    assert entry_id(Path("2024/First Post.mdx")) == "2024/first-post"
    assert entry_id(Path("!!!.md")) == "index"


def test_get_collection_loads_entries(tmp_path):
    write_post(tmp_path, "hello-world.md", "---\ntitle: Hello\n---\nHi there\n")
    write_post(tmp_path, "another.md", "---\ntitle: Another\n---\n")
    write_post(tmp_path, "notes.txt", "ignored")
    collections = ContentCollections(tmp_path / "content")

    entries = collections.get_collection("blog")
    assert [e.id for e in entries] == ["another", "hello-world"]
    hello = entries[1]
    assert hello.collection == "blog"
    assert hello.data == {"title": "Hello"}
    assert hello.body == "Hi there\n"
    assert hello.path == tmp_path / "content" / "blog" / "hello-world.md"


def test_get_collection_missing_folder(tmp_path):
    assert ContentCollections(tmp_path / "content").get_collection("blog") == []


def test_get_collection_rejects_undecodable_file(tmp_path):
    bad = write_post(tmp_path, "good.md", "---\ntitle: Good\n---\n").with_name("bad.md")
    bad.write_bytes(b"---\ntitle: a\n---\n\xff\xfe")

    with pytest.raises(ContentError) as exc_info:
        ContentCollections(tmp_path / "content").get_collection("blog")

    assert exc_info.value.source_path == bad
    assert exc_info.value.message.startswith("Not valid UTF-8")
    assert isinstance(exc_info.value.original_error, UnicodeDecodeError)


def test_get_collection_skips_drafts_and_internal(tmp_path):
    write_post(tmp_path, "published.md", "---\ntitle: Yes\n---\n")
    write_post(tmp_path, "wip.md", "---\ntitle: WIP\ndraft: true\n---\n")
    write_post(tmp_path, "_hidden.md", "---\ntitle: Hidden\n---\n")
    write_post(tmp_path, "_partials/bit.md", "---\ntitle: Bit\n---\n")

    published = ContentCollections(tmp_path / "content").get_collection("blog")
    assert [e.id for e in published] == ["published"]

    with_drafts = ContentCollections(tmp_path / "content", include_drafts=True)
    assert [e.id for e in with_drafts.get_collection("blog")] == ["published", "wip"]


def test_slug_overrides_id(tmp_path):
    write_post(tmp_path, "2024-01-01-long-name.md", "---\nslug: /short/\n---\n")
    entries = ContentCollections(tmp_path / "content").get_collection("blog")
    assert entries[0].id == "short"


def test_from_config_honours_mdx_integration(tmp_path):
    write_post(tmp_path, "plain.md", "---\ntitle: Plain\n---\n")
    write_post(tmp_path, "rich.mdx", "---\ntitle: Rich\n---\n<Component />\n")

    config = load_config(tmp_path)
    assert config.has_integration("mdx")
    ids = [e.id for e in ContentCollections.from_config(config).get_collection("blog")]
    assert ids == ["plain", "rich"]

    (tmp_path / "badware.yaml").write_text("integrations: [sitemap]\n", encoding="utf-8")
    config = load_config(tmp_path)
    ids = [e.id for e in ContentCollections.from_config(config).get_collection("blog")]
    assert ids == ["plain"]


def test_collections_satisfy_protocol(tmp_path):
    assert isinstance(ContentCollections(tmp_path), CollectionSource)


def test_entry_draft_flag():
    assert ContentEntry(id="a", collection="blog", data={"draft": True}).draft
    assert not ContentEntry(id="b", collection="blog").draft
