"""Tests for directory listing, population, grouping, and reconciliation."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from lazytree.config import TreeConfig
from lazytree.tree_model import (
    NodeKind,
    get_last_group_node,
    group_label,
    list_directory,
    populate,
    refresh_entries,
)

CONFIG = TreeConfig(git_status=False)


def _touch(root: Path, rel: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("x\n", encoding="utf-8")
    return path


class ListDirectoryTests(unittest.TestCase):
    def test_directories_sort_before_files_case_insensitively(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "b.txt")
            _touch(root, "a.txt")
            (root / "zdir").mkdir()
            (root / "Adir").mkdir()

            names = [child.name for child in list_directory(root, CONFIG)]

            self.assertEqual(names, ["Adir", "zdir", "a.txt", "b.txt"])

    def test_name_sort_interleaves_directories_and_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "b.txt")
            _touch(root, "a.txt")
            (root / "zdir").mkdir()
            (root / "Adir").mkdir()

            names = [child.name for child in list_directory(root, CONFIG.with_changes(dirs_first=False))]

            self.assertEqual(names, ["a.txt", "Adir", "b.txt", "zdir"])

    def test_dotfiles_are_skipped_unless_enabled(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, ".env")
            _touch(root, "main.py")

            hidden = [child.name for child in list_directory(root, CONFIG)]
            shown = [child.name for child in list_directory(root, CONFIG.with_changes(show_dotfiles=True))]

            self.assertEqual(hidden, ["main.py"])
            self.assertEqual(shown, [".env", "main.py"])

    def test_ignore_check_marks_children_without_dropping_them(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "keep.py")
            _touch(root, "skip.log")

            children = list_directory(root, CONFIG, ignore_check=lambda path: path.suffix == ".log")

            self.assertEqual([(child.name, child.ignored) for child in children], [("keep.py", False), ("skip.log", True)])

    def test_missing_directory_lists_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(list_directory(Path(tmp) / "missing", CONFIG), [])

    @unittest.skipIf(not hasattr(os, "symlink"), "symlinks are required")
    def test_symlinks_resolve_target_kind_one_level(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            target_dir = root / "real"
            target_dir.mkdir()
            target_file = _touch(root, "real.txt")
            os.symlink(target_dir, root / "link_dir")
            os.symlink(target_file, root / "link_file")
            os.symlink(root / "nowhere", root / "link_broken")

            children = {child.name: child for child in list_directory(root, CONFIG)}

            self.assertEqual(children["link_dir"].kind, NodeKind.SYMLINK_DIRECTORY)
            self.assertEqual(children["link_dir"].link_to, target_dir)
            self.assertEqual(children["link_file"].kind, NodeKind.SYMLINK_FILE)
            self.assertEqual(children["link_file"].link_to, target_file)
            self.assertEqual(children["link_broken"].kind, NodeKind.SYMLINK_FILE)
            self.assertEqual(children["real"].kind, NodeKind.DIRECTORY)
            self.assertIsNone(children["real"].link_to)


class PopulateTests(unittest.TestCase):
    def test_populate_builds_closed_lazy_directory_nodes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "src/a.txt")
            (root / "empty").mkdir()
            entries = []

            populate(entries, root, config=CONFIG)

            by_name = {node.name: node for node in entries}
            self.assertEqual(list(by_name), ["empty", "src"])
            self.assertTrue(by_name["src"].has_children)
            self.assertFalse(by_name["empty"].has_children)
            self.assertFalse(by_name["src"].open)
            self.assertEqual(by_name["src"].entries, [])
            self.assertEqual(by_name["src"].match_path, (root / "src").parts)

    def test_group_empty_collapses_single_directory_chain(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/c/file.txt")
            _touch(root, "a/b/c/other.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]

            populate(head.entries, head.absolute_path, head, config=config)

            self.assertEqual(group_label(head), "a/b/c")
            self.assertEqual(get_last_group_node(head).absolute_path, root / "a" / "b" / "c")
            self.assertEqual([node.name for node in head.entries], ["file.txt", "other.txt"])

    def test_chain_ends_where_a_directory_has_more_than_one_entry(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/file.txt")
            _touch(root, "a/b/c/deep.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]

            populate(head.entries, head.absolute_path, head, config=config)

            self.assertEqual(group_label(head), "a/b")
            self.assertEqual([node.name for node in head.entries], ["c", "file.txt"])


class RefreshEntriesTests(unittest.TestCase):
    def test_second_refresh_without_changes_is_a_no_op(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a.txt")
            entries = []
            populate(entries, root, config=CONFIG)
            original = entries[0]
            _touch(root, "b.txt")

            first = refresh_entries(entries, root, config=CONFIG)
            snapshot = list(entries)
            second = refresh_entries(entries, root, config=CONFIG)

            self.assertTrue(first)
            self.assertFalse(second)
            self.assertIs(entries[0], original)
            self.assertEqual([node.name for node in entries], ["a.txt", "b.txt"])
            self.assertTrue(all(left is right for left, right in zip(entries, snapshot)))

    def test_deleted_file_is_removed_then_refresh_settles(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            gone = _touch(root, "d/gone.txt")
            _touch(root, "d/kept.txt")
            d_entries = []
            populate(d_entries, root / "d", config=CONFIG)
            gone.unlink()

            self.assertTrue(refresh_entries(d_entries, root / "d", config=CONFIG))
            self.assertEqual([node.name for node in d_entries], ["kept.txt"])
            self.assertFalse(refresh_entries(d_entries, root / "d", config=CONFIG))

    def test_refresh_keeps_open_state_and_populated_children(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "src/main.py")
            entries = []
            populate(entries, root, config=CONFIG)
            src = entries[0]
            populate(src.entries, src.absolute_path, src, config=CONFIG)
            src.open = True
            child = src.entries[0]
            _touch(root, "new.txt")

            self.assertTrue(refresh_entries(entries, root, config=CONFIG))

            self.assertIs(entries[0], src)
            self.assertTrue(src.open)
            self.assertIs(src.entries[0], child)
            self.assertEqual([node.name for node in entries], ["src", "new.txt"])

    def test_refresh_replaces_node_whose_kind_changed(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            flip = _touch(root, "flip")
            entries = []
            populate(entries, root, config=CONFIG)
            before = entries[0]
            flip.unlink()
            flip.mkdir()

            self.assertTrue(refresh_entries(entries, root, config=CONFIG))
            self.assertIsNot(entries[0], before)
            self.assertEqual(entries[0].kind, NodeKind.DIRECTORY)

    def test_refresh_updates_ignore_flags_in_place(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "out.log")
            entries = []
            populate(entries, root, config=CONFIG)
            node = entries[0]

            changed = refresh_entries(entries, root, config=CONFIG, ignore_check=lambda path: True)

            self.assertTrue(changed)
            self.assertIs(entries[0], node)
            self.assertTrue(node.ignore)

    def test_refresh_dissolves_group_chain_that_gained_a_sibling(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/c/file.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]
            populate(head.entries, head.absolute_path, head, config=config)
            _touch(root, "a/b/extra.txt")

            changed = refresh_entries(head.entries, head.absolute_path, head, config=config)

            self.assertTrue(changed)
            self.assertEqual(group_label(head), "a/b")
            self.assertEqual([node.name for node in head.entries], ["c", "extra.txt"])

    def test_dissolved_chain_keeps_open_descendants(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/c/sub/f.txt")
            _touch(root, "a/b/c/g.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]
            populate(head.entries, head.absolute_path, head, config=config)
            head.open = True
            sub = head.entries[0]
            populate(sub.entries, sub.absolute_path, sub, config=config)
            sub.open = True
            _touch(root, "a/b/extra.txt")

            self.assertTrue(refresh_entries(head.entries, head.absolute_path, head, config=config))

            self.assertEqual(group_label(head), "a/b")
            c = head.entries[0]
            self.assertEqual(c.name, "c")
            self.assertTrue(c.open)
            self.assertIs(c.entries[0], sub)
            self.assertTrue(sub.open)
            self.assertEqual([node.name for node in sub.entries], ["f.txt"])
            self.assertEqual([node.name for node in c.entries], ["sub", "g.txt"])

    def test_chain_broken_at_head_keeps_former_link_subtree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/one.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]
            populate(head.entries, head.absolute_path, head, config=config)
            head.open = True
            one = head.entries[0]
            _touch(root, "a/top.txt")

            self.assertTrue(refresh_entries(head.entries, head.absolute_path, head, config=config))

            self.assertIsNone(head.group_next)
            self.assertEqual([node.name for node in head.entries], ["b", "top.txt"])
            b = head.entries[0]
            self.assertTrue(b.open)
            self.assertEqual(b.entries, [one])
            self.assertFalse(refresh_entries(head.entries, head.absolute_path, head, config=config))

    def test_refresh_of_intact_group_lists_chain_tail(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _touch(root, "a/b/one.txt")
            config = CONFIG.with_changes(group_empty=True)
            entries = []
            populate(entries, root, config=config)
            head = entries[0]
            populate(head.entries, head.absolute_path, head, config=config)
            _touch(root, "a/b/two.txt")

            self.assertTrue(refresh_entries(head.entries, head.absolute_path, head, config=config))
            self.assertEqual(group_label(head), "a/b")
            self.assertEqual([node.name for node in head.entries], ["one.txt", "two.txt"])


if __name__ == "__main__":
    unittest.main()
