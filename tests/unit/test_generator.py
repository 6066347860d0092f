"""Tests for the command line flow and DeckGenerator."""

import json

import pytest
from PIL import Image as PILImage
from pptx import Presentation

from deck_builder.errors import DeckUsageError
from deck_builder.generator import DeckGenerator, default_background, main, run
from deck_builder.pptx_renderer import PPTXRenderer

SAMPLE = """# Intro
## Subtitle
Welcome to the deck.
>note: remember to smile

# Agenda
- first
- second
  - nested

```python
print("hi")
```

| A | B |
|---|---|
| 1 | 2 |
"""


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "deck.txt"
    path.write_text(SAMPLE, encoding="utf-8")
    return path


def _exit_code(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_successful_run_writes_presentation(sample_file, tmp_path):
    out = tmp_path / "deck.pptx"

    assert _exit_code(["--in", str(sample_file), "--out", str(out)]) == 0
    prs = Presentation(str(out))
    assert len(prs.slides) >= 2


def test_metadata_flags(sample_file, tmp_path):
    out = tmp_path / "deck.pptx"
    run(["--in", str(sample_file), "--out", str(out), "--title", "Deck", "--author", "Ada",
         "--layout", "LAYOUT_WIDE"])

    prs = Presentation(str(out))
    assert prs.core_properties.title == "Deck"
    assert prs.core_properties.author == "Ada"


def test_dump_json(sample_file, tmp_path):
    out = tmp_path / "deck.pptx"
    dump = tmp_path / "slides.json"
    run(["--in", str(sample_file), "--out", str(out), "--dump-json", str(dump)])

    data = json.loads(dump.read_text(encoding="utf-8"))
    assert [slide["title"] for slide in data] == ["Intro", "Agenda"]
    assert data[0]["notes"] == "remember to smile"
    assert [block["kind"] for block in data[1]["blocks"]] == ["bullets", "code", "table"]


def test_missing_input_exits_with_error(tmp_path, capsys):
    code = _exit_code(["--in", str(tmp_path / "missing.txt"), "--out", str(tmp_path / "x.pptx")])

    assert code == 1
    assert "Failed to read input file" in capsys.readouterr().err


def test_output_must_be_pptx(sample_file, tmp_path, capsys):
    assert _exit_code(["--in", str(sample_file), "--out", str(tmp_path / "deck.pdf")]) == 1
    assert ".pptx" in capsys.readouterr().err


def test_missing_output_directory(sample_file, tmp_path):
    out = tmp_path / "nowhere" / "deck.pptx"
    assert _exit_code(["--in", str(sample_file), "--out", str(out)]) == 1


def test_unknown_layout(sample_file, tmp_path, capsys):
    code = _exit_code(["--in", str(sample_file), "--out", str(tmp_path / "d.pptx"), "--layout", "A4"])

    assert code == 1
    assert "Unsupported layout" in capsys.readouterr().err


def test_missing_required_argument():
    assert _exit_code(["--in", "deck.txt"]) == 1


def test_input_without_slides(tmp_path, capsys):
    blank = tmp_path / "blank.txt"
    blank.write_text("\n\n   \n", encoding="utf-8")
    out = tmp_path / "deck.pptx"

    assert _exit_code(["--in", str(blank), "--out", str(out)]) == 1
    assert "No slides detected" in capsys.readouterr().err
    assert not out.exists()


def test_generator_resolves_images_against_base_dir(tmp_path):
    (tmp_path / "img").mkdir()
    out = tmp_path / "deck.pptx"
    generator = DeckGenerator(base_dir=str(tmp_path))

    generator.generate("# Pic\n![missing](img/none.png)", str(out))
    prs = Presentation(str(out))
    texts = [s.text_frame.text for s in prs.slides[0].shapes if s.has_text_frame]
    assert "[Missing image: none.png]" in texts


def test_generator_rejects_unknown_layout():
    with pytest.raises(DeckUsageError):
        DeckGenerator(layout="LAYOUT_A4")


def test_unembeddable_image_still_builds_deck(tmp_path):
    PILImage.new("RGB", (40, 20), "green").save(tmp_path / "pic.webp", "WEBP")
    source = tmp_path / "pic.txt"
    source.write_text("# Pic\n![p](pic.webp)\n", encoding="utf-8")
    out = tmp_path / "pic.pptx"

    assert _exit_code(["--in", str(source), "--out", str(out)]) == 0
    texts = [s.text_frame.text for s in Presentation(str(out)).slides[0].shapes if s.has_text_frame]
    assert "[Missing image: pic.webp]" in texts


def test_renderer_failure_exits_with_one_line(sample_file, tmp_path, capsys, monkeypatch):
    def broken_build(self, pages):
        raise RuntimeError("template corrupt\nsecond line of detail")

    monkeypatch.setattr(PPTXRenderer, "build", broken_build)
    out = tmp_path / "deck.pptx"

    assert _exit_code(["--in", str(sample_file), "--out", str(out)]) == 1
    err = capsys.readouterr().err
    assert err.strip() == "Failed to render presentation: template corrupt"
    assert not out.exists()


def test_generate_reports_parsed_slides(tmp_path):
    seen = []
    out = tmp_path / "deck.pptx"
    DeckGenerator(base_dir=str(tmp_path)).generate("# A\ntext\n# B", str(out), on_parsed=seen.extend)

    assert [slide.title for slide in seen] == ["A", "B"]
    assert out.exists()


@pytest.mark.parametrize("value", ["https://example.com/bg.png", "http://example.com/bg.png",
                                   "data:image/png;base64,AAAA"])
def test_remote_background_is_not_resolved(value):
    assert default_background(value) == value


def test_local_background_resolves_against_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert default_background("bg.png") == str((tmp_path / "bg.png").resolve())
    assert default_background(None) is None


def test_remote_background_flag_does_not_fail(sample_file, tmp_path):
    out = tmp_path / "deck.pptx"
    args = ["--in", str(sample_file), "--out", str(out), "--bg", "https://example.com/bg.png"]

    assert _exit_code(args) == 0
    assert out.exists()
