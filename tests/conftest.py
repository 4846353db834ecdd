import struct
import zlib
from io import BytesIO

import docx
import pytest


def build_docx(*paragraphs, header=None):
    """Word package with one paragraph per argument.

    A paragraph given as a list/tuple is written as one run per item, the
    way Word splits text it has re-formatted.
    """
    document = docx.Document()
    for paragraph in paragraphs:
        if isinstance(paragraph, (list, tuple)):
            p = document.add_paragraph()
            for text in paragraph:
                p.add_run(text)
        else:
            document.add_paragraph(paragraph)
    if header is not None:
        document.sections[0].header.paragraphs[0].text = header
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


def build_png(width, height):
    def chunk(kind, data):
        body = kind + data
        return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body) & 0xFFFFFFFF)

    raw = b"".join(b"\x00" + b"\x00" * (width * 3) for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))
        + chunk(b"IDAT", zlib.compress(raw))
        + chunk(b"IEND", b"")
    )


@pytest.fixture
def make_docx():
    return build_docx


@pytest.fixture
def png_640x480():
    return build_png(640, 480)


@pytest.fixture
def venue_input():
    """Raw arrange-venue form as the front end posts it."""
    return {
        "Country": "India",
        "Date_of_FR": "2025-02-18",
        "Event_Date": "2025-02-21",
        "Claimant_Name": "Jane Doe",
        "Event_Type": "Medical Examination",
        "Event_Time": "09:00",
        "Start_Time_For_Booking_Venue": "08:30",
        "Venue_Name": "Grand Hall",
        "Venue_Number": "12",
        "Venue_Address": "1 Main St",
        "Reception_Person_Name": "Bob",
        "Meeting_Type": "In Person",
        "Distance_In_Kilometres": "10",
    }
