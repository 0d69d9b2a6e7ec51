"""Tests for Twee/SugarCube exporter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bigif.compiler import compile_script
from bigif.export.twee_exporter import (
    TweeExporter,
    _escape_sugarcube,
    passage_names,
    render_twee,
    story_title,
)
from tests.fixtures.scripts import DOOR_AND_KEY

if TYPE_CHECKING:
    from pathlib import Path


class TestTweeExporter:
    def test_creates_output_file(self, tmp_path: Path) -> None:
        result = TweeExporter().export(compile_script(DOOR_AND_KEY), tmp_path / "out")

        assert result.exists()
        assert result.suffix == ".twee"

    def test_story_header(self) -> None:
        content = render_twee(compile_script(DOOR_AND_KEY))

        assert ":: StoryTitle\nThe Locked Door" in content
        assert ":: StoryData" in content
        assert '"format": "SugarCube"' in content

    def test_ifid_stable(self) -> None:
        graph = compile_script(DOOR_AND_KEY)

        assert render_twee(graph) == render_twee(compile_script(DOOR_AND_KEY))

    def test_passages_and_links(self) -> None:
        content = render_twee(compile_script(DOOR_AND_KEY))

        assert ":: Start [start]" in content
        assert ":: index\n" in content
        assert ":: victory [ending]" in content
        assert "[[Search the floor.->index]]" in content
        assert "[[Open the door.->victory]]" in content


class TestPassageNames:
    def test_repeated_knots_numbered(self) -> None:
        text = """\
// STATES: a

=== index ===
* {a == false} Flip. ~ a = true -> room
* Go. -> room

=== room ===
END
"""
        graph = compile_script(text)
        names = passage_names(graph)

        assert names["index|a=false"] == "Start"
        assert names["room|a=true"] == "room"
        assert names["room|a=false"] == "room (2)"

    def test_special_passage_names_not_reused(self) -> None:
        text = """\
=== index ===
* Data. -> StoryData
* Title. -> StoryTitle

=== StoryData ===
END

=== StoryTitle ===
END
"""
        graph = compile_script(text)
        names = passage_names(graph)

        assert names["StoryData|"] == "StoryData (2)"
        assert names["StoryTitle|"] == "StoryTitle (2)"

        headers = [line for line in render_twee(graph).splitlines() if line.startswith("::")]
        assert headers.count(":: StoryData") == 1
        assert headers.count(":: StoryTitle") == 1
        assert ":: StoryData (2) [ending]" in headers

    def test_unsafe_characters_replaced(self) -> None:
        graph = compile_script("=== index ===\n* Go. -> a[b]\n=== a[b] ===\nEND\n")

        assert passage_names(graph)["a[b]|"] == "a_b_"


class TestHelpers:
    def test_story_title_default(self) -> None:
        assert story_title({}) == "Untitled"
        assert story_title({"Title": "Quest"}) == "Quest"

    def test_escape_macros(self) -> None:
        assert _escape_sugarcube("<<run x>>") == "&lt;&lt;run x&gt;&gt;"

    def test_unsafe_label_uses_link_macro(self) -> None:
        graph = compile_script("=== index ===\n* Left | Right -> end\n=== end ===\nEND\n")

        assert '<<link "Left | Right" "end">><</link>>' in render_twee(graph)
