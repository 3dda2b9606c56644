from __future__ import annotations

from pathlib import Path

import pytest

from services.io import decode_document, read_document
from utils.text import normalize_document, preview


def test_decode_document_handles_bom_and_gb18030() -> None:
    assert decode_document("\ufeff第一条\r\n第二条  \r\n".encode("utf-8")) == "第一条\n第二条"
    assert decode_document("甲方与乙方".encode("gb18030")) == "甲方与乙方"


def test_read_document_rejects_binary_formats(tmp_path: Path) -> None:
    pdf = tmp_path / "contract.pdf"
    pdf.write_bytes(b"%PDF-1.7")

    with pytest.raises(ValueError, match="Unsupported document type"):
        read_document(pdf)


def test_read_document_reads_markdown(tmp_path: Path) -> None:
    path = tmp_path / "contract.MD"
    path.write_text("# 合同\n\n正文\n", encoding="utf-8")

    assert read_document(path) == "# 合同\n\n正文"


def test_normalize_and_preview() -> None:
    assert normalize_document("\n\na\rb \n") == "a\nb"
    assert preview("短文本") == "短文本"
    assert preview("字" * 100, limit=10) == "字" * 9 + "…"
