# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from docxtranslate.errors import DocxFormatError

DOCUMENT_XML_PATH = "word/document.xml"


@dataclass
class DocxPackage:
    """A .docx read into memory: the main document XML plus every archive entry, in order."""
    path: Path
    document_xml: str
    entries: list[tuple[zipfile.ZipInfo, bytes]] = field(default_factory=list)


def open_docx(path: str | Path) -> DocxPackage:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with zipfile.ZipFile(path, "r") as zf:
            entries = [(info, zf.read(info.filename)) for info in zf.infolist()]
    except zipfile.BadZipFile as e:
        raise DocxFormatError(f"{path} is not a valid .docx (zip) file: {e}") from e

    document = next((data for info, data in entries if info.filename == DOCUMENT_XML_PATH), None)
    if document is None:
        raise DocxFormatError(f"No {DOCUMENT_XML_PATH} found in {path}. Is this a valid .docx file?")
    try:
        document_xml = document.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DocxFormatError(f"{DOCUMENT_XML_PATH} in {path} is not UTF-8 encoded: {e}") from e
    return DocxPackage(path=path, document_xml=document_xml, entries=entries)


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    new_info = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    new_info.compress_type = info.compress_type
    new_info.external_attr = info.external_attr
    return new_info


def save_docx(package: DocxPackage, document_xml: str, output_path: str | Path) -> Path:
    """
    Write ``package`` to ``output_path`` with ``document_xml`` as its main
    document part. Every other entry is copied unchanged, in original order.
    The archive is assembled in a temporary file and renamed into place, so
    a failure never leaves a half-written output behind.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".part", dir=output_path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        with zipfile.ZipFile(tmp_path, "w") as zf_out:
            for info, data in package.entries:
                if info.filename == DOCUMENT_XML_PATH:
                    data = document_xml.encode("utf-8")
                zf_out.writestr(_copy_info(info), data)
        os.replace(tmp_path, output_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return output_path
