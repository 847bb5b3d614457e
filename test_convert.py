"""
End-to-end tests: GPX bytes through gpxpy, the mapping and the KML writer,
plus the command line entry point.
"""
import io
import sys

import pytest
from lxml import etree

from gpxkml import ParseError, WriteError, convert, convert_stream
from gpxkml import gpx_to_kml
from gpxkml.source import parse
from gpxkml.target import ATOM_NAMESPACE, KML_NAMESPACE

NS = {"k": KML_NAMESPACE, "atom": ATOM_NAMESPACE}

GPX = b"""<?xml version="1.0" encoding="UTF-8"?>
<gpx xmlns="http://www.topografix.com/GPX/1/1" version="1.1" creator="unit-test">
  <metadata>
    <name>Alps</name>
    <desc>Hike</desc>
    <author><name>Ann</name><email id="ann" domain="example.org"/></author>
    <copyright author="Ann"><year>2020</year><license>CC-BY</license></copyright>
    <link href="https://example.org/trip"><text>Trip</text></link>
    <keywords>alps,summer</keywords>
  </metadata>
  <wpt lat="48.858222" lon="2.2945">
    <ele>12.5</ele>
    <time>2022-03-04T05:06:07Z</time>
    <name>Eiffel Tower</name>
    <cmt>tall</cmt>
    <link href="https://example.org/tower"/>
    <type>landmark</type>
  </wpt>
  <wpt lat="1.5" lon="2.5"><name>Plain</name></wpt>
  <rte>
    <name>Route</name>
    <rtept lat="1.0" lon="2.0"/>
    <rtept lat="3.0" lon="4.0"><ele>5.0</ele></rtept>
  </rte>
  <trk>
    <name>Track</name>
    <src>logger</src>
    <trkseg>
      <trkpt lat="10.0" lon="20.0"/>
      <trkpt lat="11.0" lon="21.0"/>
    </trkseg>
    <trkseg></trkseg>
  </trk>
</gpx>
"""


def kml_root(data: bytes):
    return etree.fromstring(data)


def test_parse_source_model():
    doc = parse(GPX)
    assert doc.creator == "unit-test"
    assert doc.metadata.name == "Alps"
    assert doc.metadata.keywords == "alps,summer"
    assert doc.metadata.author.email == "ann@example.org"
    assert doc.metadata.copyright.year == "2020"
    assert [link.href for link in doc.metadata.links] == ["https://example.org/trip"]
    assert [w.name for w in doc.waypoints] == ["Eiffel Tower", "Plain"]
    assert doc.waypoints[0].elevation == 12.5
    assert doc.waypoints[1].elevation is None
    assert doc.waypoints[1].description is None
    assert len(doc.tracks[0].segments) == 2
    assert doc.tracks[0].segments[1].points == ()


def test_parse_without_metadata():
    doc = parse(b'<gpx version="1.1" creator="x"><wpt lat="1" lon="2"/></gpx>')
    assert doc.metadata is None
    assert doc.waypoints[0].longitude == 2.0


MULTI_LINK_GPX = b"""<?xml version="1.0" encoding="UTF-8"?>
<gpx xmlns="http://www.topografix.com/GPX/1/1" version="1.1" creator="links">
  <metadata>
    <link href="https://example.org/m1"/>
    <link href="https://example.org/m2"/>
  </metadata>
  <wpt lat="1.0" lon="2.0"><name>first</name></wpt>
  <wpt lat="1.5" lon="2.5">
    <name>two links</name>
    <link href="a"><text>A</text></link>
    <link href="b"/>
  </wpt>
  <rte>
    <link href="r1"/><link href="r2"/><link href="r3"/>
    <rtept lat="1.0" lon="2.0"/>
  </rte>
  <trk>
    <link href="t1"/><link href="t2"/>
    <trkseg><trkpt lat="1.0" lon="2.0"/></trkseg>
  </trk>
</gpx>
"""


def test_parse_keeps_every_link():
    doc = parse(MULTI_LINK_GPX)
    assert [link.href for link in doc.metadata.links] == ["https://example.org/m1", "https://example.org/m2"]
    assert doc.waypoints[0].links == ()
    assert [link.href for link in doc.waypoints[1].links] == ["a", "b"]
    assert [link.href for link in doc.routes[0].links] == ["r1", "r2", "r3"]
    assert [link.href for link in doc.tracks[0].links] == ["t1", "t2"]


def test_convert_writes_every_link():
    root = kml_root(convert(MULTI_LINK_GPX))
    wpt = root.xpath("k:Document/k:Placemark[2]", namespaces=NS)[0]
    links = wpt.xpath("atom:link", namespaces=NS)
    assert [dict(link.attrib) for link in links] == [{"href": "a"}, {"href": "b"}]
    assert root.xpath("k:Document/atom:link/@href", namespaces=NS) == [
        "https://example.org/m1", "https://example.org/m2",
    ]


def test_parse_honours_declared_encoding():
    data = (
        '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
        '<gpx xmlns="http://www.topografix.com/GPX/1/1" version="1.1" creator="x">'
        '<wpt lat="1" lon="2"><name>Café Zürich</name></wpt></gpx>'
    ).encode("iso-8859-1")
    doc = parse(data)
    assert doc.waypoints[0].name == "Café Zürich"
    assert "Café Zürich".encode("utf-8") in convert(data)


def test_non_gpx_root_message():
    with pytest.raises(ParseError) as exc:
        parse(b"<foo/>")
    assert "<foo>" in str(exc.value)


def test_convert_end_to_end():
    data = convert(GPX)
    assert data.startswith(b'<?xml version="1.0" encoding="UTF-8"?>\n')
    assert data.endswith(b"\n")
    root = kml_root(data)
    doc = root.xpath("k:Document", namespaces=NS)[0]
    assert doc.xpath("string(k:open)", namespaces=NS) == "1"
    assert doc.xpath("string(k:name)", namespaces=NS) == "Alps"
    assert doc.xpath("string(atom:author/atom:name)", namespaces=NS) == "Ann <ann@example.org>"

    description = doc.xpath("string(k:description)", namespaces=NS)
    assert description == (
        "Hike\n"
        "Created by unit-test\n"
        "Keywords: alps,summer\n"
        "Copyright Ann 2020 under CC-BY\n"
    )

    names = doc.xpath("k:Placemark/k:name/text()", namespaces=NS)
    assert names == ["Eiffel Tower", "Plain", "Route", "Track"]

    tower = doc.xpath("k:Placemark", namespaces=NS)[0]
    assert tower.xpath("string(k:description)", namespaces=NS) == (
        "tall\nCreated 2022-03-04T05:06:07Z\nType: landmark\n"
    )
    assert tower.xpath("string(k:Point/k:coordinates)", namespaces=NS) == "2.2945,48.858222,12.5"
    assert tower.xpath("atom:link/@href", namespaces=NS) == ["https://example.org/tower"]

    route_line = doc.xpath("k:Placemark[3]/k:LineString", namespaces=NS)[0]
    assert route_line.xpath("string(k:altitudeMode)", namespaces=NS) == "absolute"

    track = doc.xpath("k:Placemark[4]", namespaces=NS)[0]
    assert track.xpath("string(k:description)", namespaces=NS) == "Source: logger\n"
    assert len(track.xpath("k:MultiGeometry/k:LineString", namespaces=NS)) == 2


def test_convert_is_byte_identical():
    assert convert(GPX) == convert(GPX)


@pytest.mark.parametrize("data", [
    b"",
    b"<gpx><wpt",
    b"not xml at all",
    b"\x80\x81<gpx/>",
    b"<foo/>",
    b"<kml xmlns=\"http://www.opengis.net/kml/2.2\"><Document/></kml>",
])
def test_malformed_input_is_parse_error(data):
    with pytest.raises(ParseError) as exc:
        convert(data)
    assert exc.value.phase == "parse"


def test_parse_error_before_any_output():
    sink = io.BytesIO()
    with pytest.raises(ParseError):
        convert_stream(io.BytesIO(b"<gpx><wpt"), sink)
    assert sink.getvalue() == b""


class BrokenSink(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def write(self, data):
        self.calls += 1
        raise OSError("broken pipe")


def test_write_failure_is_write_error():
    sink = BrokenSink()
    with pytest.raises(WriteError) as exc:
        convert_stream(io.BytesIO(GPX), sink)
    assert exc.value.phase == "write"
    assert sink.calls == 1


class FakeStd:
    def __init__(self, data: bytes = b""):
        self.buffer = io.BytesIO(data)


def test_cli_stdin_to_stdout(monkeypatch):
    monkeypatch.setattr(sys, "stdin", FakeStd(GPX))
    monkeypatch.setattr(sys, "stdout", FakeStd())
    assert gpx_to_kml.main([]) == 0
    assert sys.stdout.buffer.getvalue() == convert(GPX)


def test_cli_files(tmp_path):
    src = tmp_path / "trip.gpx"
    dst = tmp_path / "trip.kml"
    src.write_bytes(GPX)
    assert gpx_to_kml.main([str(src), "-o", str(dst)]) == 0
    assert dst.read_bytes() == convert(GPX)


def test_cli_env_paths(tmp_path, monkeypatch):
    src = tmp_path / "flight.gpx"
    dst = tmp_path / "flight_3d.kml"
    src.write_bytes(GPX)
    monkeypatch.setenv("GPX_FILE", str(src))
    monkeypatch.setenv("KML_FILE", str(dst))
    assert gpx_to_kml.main([]) == 0
    assert dst.exists()


def test_cli_bad_input_keeps_existing_output(tmp_path, capsys):
    src = tmp_path / "bad.gpx"
    dst = tmp_path / "out.kml"
    src.write_bytes(b"<gpx><wpt")
    dst.write_bytes(b"previous")
    assert gpx_to_kml.main([str(src), "-o", str(dst)]) == 1
    assert dst.read_bytes() == b"previous"
    assert "Conversion failed" in capsys.readouterr().err


def test_cli_missing_file(tmp_path, capsys):
    assert gpx_to_kml.main([str(tmp_path / "missing.gpx")]) == 1
    assert "Cannot open" in capsys.readouterr().err


def test_cli_malformed_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", FakeStd(b"garbage"))
    assert gpx_to_kml.main(["-"]) == 1
    assert "parse failed" in capsys.readouterr().err
