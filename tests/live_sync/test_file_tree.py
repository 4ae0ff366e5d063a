"""Tests for the document tree builder."""

from docsync.live_sync.file_tree import (
    build_tree,
    first_document_path,
    iter_leaves,
    sort_key,
)


def _names(nodes):
    return [node.name for node in nodes]


class TestBuildTree:
    """Tests for build_tree."""

    def test_containers_before_leaves(self, refs):
        """Folders should come first, then documents, each sorted by name."""
        tree = build_tree(refs("z.md", "a.md", "docs/b.md"))
        assert _names(tree) == ["docs", "a.md", "z.md"]
        assert tree[0].is_container
        assert _names(tree[0].children) == ["b.md"]

    def test_nested_folders(self, refs):
        """Shared prefixes should produce a single folder."""
        tree = build_tree(refs("a/b/one.md", "a/b/two.md", "a/three.md"))
        assert len(tree) == 1
        folder_a = tree[0]
        assert folder_a.path == "a"
        assert _names(folder_a.children) == ["b", "three.md"]
        assert folder_a.children[0].path == "a/b"
        assert _names(folder_a.children[0].children) == ["one.md", "two.md"]

    def test_listing_order_irrelevant(self, refs):
        """Any permutation of the listing should build the same tree."""
        paths = ["b/x.md", "a.md", "B.md", "b/a.md", "c/d/e.md"]
        expected = [leaf.path for leaf in iter_leaves(build_tree(refs(*paths)))]
        for shuffled in (list(reversed(paths)), paths[2:] + paths[:2]):
            assert [leaf.path for leaf in iter_leaves(build_tree(refs(*shuffled)))] == expected

    def test_leaves_preserve_listing_paths(self, refs):
        """Every leaf should carry its originating path exactly once."""
        paths = ["x.md", "docs/y.md", "docs/deep/z.markdown", "Docs/y.md"]
        leaves = [leaf.path for leaf in iter_leaves(build_tree(refs(*paths)))]
        assert sorted(leaves) == sorted(paths)

    def test_case_insensitive_ordering(self, refs):
        """Names should sort ignoring case, lowercase first on ties."""
        tree = build_tree(refs("Beta.md", "alpha.md", "beta.md"))
        assert _names(tree) == ["alpha.md", "beta.md", "Beta.md"]

    def test_empty_listing(self):
        assert build_tree([]) == []


class TestFirstDocumentPath:
    """Tests for first_document_path."""

    def test_first_in_tree_order(self, refs):
        """Folder contents should win over root documents."""
        assert first_document_path(refs("z.md", "a.md", "docs/b.md")) == "docs/b.md"

    def test_empty_listing(self):
        assert first_document_path([]) == ""

    def test_sort_key_orders_casefold(self):
        assert sort_key("a") < sort_key("B") < sort_key("c")
