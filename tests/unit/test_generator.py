"""End-to-end pipeline tests with a stand-in renderer (no browser, no LibreOffice)."""

import json

import pytest
from pypdf import PdfReader, PdfWriter
from slides2pptx import generator
from slides2pptx.config import PipelineConfig
from slides2pptx.errors import ConversionError, SetupError
from slides2pptx.generator import DeckConverter, main, report
from slides2pptx.models import AssemblyStatus, RenderFailure, RenderResult, RenderSuccess


class PdfWritingRenderer:
    """Writes a blank one-page PDF per slide; ids in ``failing`` fail."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.rendered = []

    async def render(self, job, viewport, output_path):
        self.rendered.append(job.slide_id)
        if job.slide_id in self.failing:
            return RenderResult(job.sequence_index, job.slide_id, RenderFailure("Navigation Timeout Exceeded", 3))
        writer = PdfWriter()
        writer.add_blank_page(width=100 + job.sequence_index, height=viewport.height * 0.75)
        with open(output_path, "wb") as f:
            writer.write(f)
        return RenderResult(
            job.sequence_index, job.slide_id, RenderSuccess(output_path, viewport.width, viewport.height)
        )


@pytest.fixture
def deck(tmp_path):
    slide_ids = ["title", "agenda", "results", "next-steps"]
    for sid in slide_ids:
        (tmp_path / f"{sid}.html").write_text(
            f'<div class="slide-container"><h1>{sid}</h1><i class="fas fa-house"></i></div>',
            encoding="utf-8",
        )
    path = tmp_path / "slides.json"
    path.write_text(
        json.dumps({"slide_ids": slide_ids, "files": [{"id": sid} for sid in slide_ids]}),
        encoding="utf-8",
    )
    return path


def page_widths(path):
    return [round(float(page.mediabox.width)) for page in PdfReader(str(path)).pages]


@pytest.mark.asyncio
async def test_partial_run_merges_survivors(deck, tmp_path):
    config = PipelineConfig(pdf_only=True, concurrency=2)
    summary = await DeckConverter(config, renderer=PdfWritingRenderer(failing={"results"})).convert(deck)

    artifact = summary.artifact
    assert artifact.status is AssemblyStatus.PARTIAL
    assert artifact.path == (tmp_path / "presentation.pdf").resolve()
    assert page_widths(artifact.path) == [100, 101, 103]
    assert [r.slide_id for r in artifact.omitted] == ["results"]
    assert summary.pptx_path is None
    assert not (tmp_path / ".slides_tmp").exists()
    assert {"render", "merge", "total"} <= set(summary.timings)
    assert report(summary) == 0


@pytest.mark.asyncio
async def test_keep_pdfs_leaves_slide_pdfs_in_output(deck, tmp_path):
    out = tmp_path / "out"
    config = PipelineConfig(pdf_only=True, keep_pdfs=True, output_dir=out)
    await DeckConverter(config, renderer=PdfWritingRenderer()).convert(deck)

    assert sorted(p.name for p in out.glob("*.pdf")) == [
        "agenda.pdf", "next-steps.pdf", "presentation.pdf", "results.pdf", "title.pdf",
    ]


@pytest.mark.asyncio
async def test_conversion_failure_keeps_merged_pdf(deck, tmp_path, monkeypatch):
    def broken(pdf_path, timeout=300):
        raise ConversionError("LibreOffice exited with status 1: boom")

    monkeypatch.setattr(generator, "convert_to_pptx", broken)

    summary = await DeckConverter(PipelineConfig(), renderer=PdfWritingRenderer()).convert(deck)

    assert summary.conversion_error == "LibreOffice exited with status 1: boom"
    assert summary.artifact.path.exists()
    assert "convert" in summary.timings
    assert report(summary) == 2


@pytest.mark.asyncio
async def test_successful_conversion_is_verified(deck, monkeypatch, caplog):
    def fake_convert(pdf_path, timeout=300):
        pptx = pdf_path.with_suffix(".pptx")
        pptx.write_bytes(b"PK")
        return pptx

    monkeypatch.setattr(generator, "convert_to_pptx", fake_convert)
    monkeypatch.setattr(generator, "count_slides", lambda path: 2)

    summary = await DeckConverter(PipelineConfig(), renderer=PdfWritingRenderer()).convert(deck)

    assert summary.pptx_path.name == "presentation.pptx"
    assert summary.conversion_error is None
    assert "has 2 slide(s) but the merged PDF has 4 page(s)" in caplog.text
    assert report(summary) == 0


@pytest.mark.asyncio
async def test_total_failure(deck):
    renderer = PdfWritingRenderer(failing={"title", "agenda", "results", "next-steps"})

    summary = await DeckConverter(PipelineConfig(), renderer=renderer).convert(deck)

    assert summary.artifact.path is None
    assert report(summary) == 1


@pytest.mark.asyncio
async def test_no_resolvable_slides(tmp_path):
    path = tmp_path / "slides.json"
    path.write_text(json.dumps({"slide_ids": ["ghost"], "files": [{"id": "ghost"}]}), encoding="utf-8")
    renderer = PdfWritingRenderer()

    with pytest.raises(SetupError, match="No HTML files found"):
        await DeckConverter(PipelineConfig(), renderer=renderer).convert(path)
    assert renderer.rendered == []


@pytest.mark.asyncio
async def test_single_html_input(tmp_path):
    slide = tmp_path / "only.html"
    slide.write_text("<h1>Only</h1>", encoding="utf-8")

    summary = await DeckConverter(PipelineConfig(pdf_only=True), renderer=PdfWritingRenderer()).convert(slide)

    assert summary.artifact.included == ["only"]
    assert summary.artifact.path.name == "only.pdf"
    assert not (tmp_path / "presentation.pdf").exists()


@pytest.mark.asyncio
async def test_pptx_only_removes_merged_pdf(tmp_path, monkeypatch):
    slide = tmp_path / "quarterly.html"
    slide.write_text("<h1>Q3</h1>", encoding="utf-8")

    def fake_convert(pdf_path, timeout=300):
        pptx = pdf_path.with_suffix(".pptx")
        pptx.write_bytes(b"PK")
        return pptx

    monkeypatch.setattr(generator, "convert_to_pptx", fake_convert)
    monkeypatch.setattr(generator, "count_slides", lambda path: 1)

    summary = await DeckConverter(PipelineConfig(pptx_only=True), renderer=PdfWritingRenderer()).convert(slide)

    assert summary.pptx_path == (tmp_path / "quarterly.pptx").resolve()
    assert summary.pdf_removed
    assert not (tmp_path / "quarterly.pdf").exists()
    assert report(summary) == 0


@pytest.mark.asyncio
async def test_pptx_only_keeps_pdf_when_conversion_fails(tmp_path, monkeypatch):
    slide = tmp_path / "quarterly.html"
    slide.write_text("<h1>Q3</h1>", encoding="utf-8")

    def broken(pdf_path, timeout=300):
        raise ConversionError("LibreOffice not found")

    monkeypatch.setattr(generator, "convert_to_pptx", broken)

    summary = await DeckConverter(PipelineConfig(pptx_only=True), renderer=PdfWritingRenderer()).convert(slide)

    assert not summary.pdf_removed
    assert (tmp_path / "quarterly.pdf").exists()
    assert report(summary) == 2


class StubConverter:
    """Replaces DeckConverter inside ``main``."""

    failing = set()
    configs = []

    def __init__(self, config):
        self.config = config
        StubConverter.configs.append(config)

    async def convert(self, input_path):
        return await DeckConverter(self.config, renderer=PdfWritingRenderer(self.failing)).convert(input_path)


@pytest.fixture
def stub_converter(monkeypatch):
    StubConverter.failing = set()
    StubConverter.configs = []
    monkeypatch.setattr(generator, "DeckConverter", StubConverter)
    return StubConverter


def test_main_passes_options(deck, stub_converter):
    code = main([str(deck), "--pdf-only", "--width", "1920", "--height", "1080", "--concurrency", "2"])

    assert code == 0
    config = stub_converter.configs[0]
    assert (config.width, config.height, config.concurrency) == (1920, 1080, 2)
    assert config.pdf_only


def test_main_strict_partial(deck, stub_converter):
    stub_converter.failing = {"agenda"}

    assert main([str(deck), "--pdf-only"]) == 0
    assert main([str(deck), "--pdf-only", "--strict"]) == 3


def test_main_missing_input(tmp_path, icon_dir, monkeypatch):
    monkeypatch.setenv("SLIDES_ICON_DIR", str(icon_dir))
    assert main([str(tmp_path / "slides.json")]) == 1


def test_main_rejects_bad_viewport(deck, stub_converter):
    assert main([str(deck), "--width", "0"]) == 1
    assert stub_converter.configs == []


def test_main_reports_unwritable_output(deck, stub_converter, monkeypatch, tmp_path):
    def disk_full(results, output_path):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(generator, "assemble", disk_full)

    assert main([str(deck), "--pdf-only"]) == 1
    assert not (tmp_path / ".slides_tmp").exists()


def test_main_rejects_conflicting_output_modes(deck, stub_converter):
    assert main([str(deck), "--pdf-only", "--pptx-only"]) == 1
    assert stub_converter.configs == []


def test_main_passes_attempt_timeout(deck, stub_converter):
    assert main([str(deck), "--pdf-only", "--attempt-timeout", "15"]) == 0
    assert stub_converter.configs[0].attempt_timeout == 15
