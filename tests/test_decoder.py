"""Tests for the decoder module."""

from datetime import datetime, timezone

import pytest

from gpsd_client.decoder import KNOWN_CLASSES, decode
from gpsd_client.errors import DecodeError, UnknownClass
from gpsd_client.models import DEVICE, DEVICES, POLL, SKY, TPV, VERSION, WATCH, Activated


SAMPLE_FRAMES = {
    "TPV": b'{"class":"TPV","device":"/dev/pts/1","mode":3,"time":"2005-06-08T10:34:48.283Z",'
           b'"ept":0.005,"lat":46.498293369,"lon":7.567411672,"alt":1343.127,"eph":36.000,'
           b'"epv":32.321,"track":10.3788,"speed":0.091,"climb":-0.085,"eps":23.92}',
    "SKY": b'{"class":"SKY","device":"/dev/pts/1","time":"2005-07-08T11:28:07.114Z",'
           b'"xdop":1.55,"hdop":1.24,"pdop":1.99,"satellites":['
           b'{"PRN":23,"el":6,"az":84,"ss":0,"used":false},'
           b'{"PRN":28,"el":7,"az":160,"ss":0,"used":false}]}',
    "GST": b'{"class":"GST","device":"/dev/ttyUSB0","time":"2010-12-07T10:23:07.096Z",'
           b'"rms":2.440,"major":1.660,"minor":1.120,"orient":68.989,"lat":1.600,"lon":1.200,"alt":2.520}',
    "ATT": b'{"class":"ATT","device":"/dev/pts/3","time":"2010-12-07T10:23:07.096Z",'
           b'"heading":14223.00,"mag_st":"N","pitch":169.00,"pitch_st":"N","roll":-43.00,'
           b'"roll_st":"N","dip":13641.000,"mag_x":2454.000}',
    "VERSION": b'{"class":"VERSION","release":"3.16","rev":"3.16","proto_major":3,"proto_minor":11}',
    "DEVICES": b'{"class":"DEVICES","devices":[{"class":"DEVICE","path":"/dev/pts/1",'
               b'"flags":1,"driver":"SiRF binary","activated":"2021-04-01T10:00:00.000Z"}]}',
    "WATCH": b'{"class":"WATCH","enable":true,"json":true,"nmea":false,"raw":0,'
             b'"scaled":false,"timing":false,"split24":false,"pps":false}',
    "POLL": b'{"class":"POLL","time":"2010-06-04T10:31:00.289Z","active":1,'
            b'"tpv":[{"class":"TPV","device":"/dev/ttyUSB0","mode":3,"lat":46.5}],'
            b'"gst":[],"sky":[{"class":"SKY","device":"/dev/ttyUSB0","satellites":[]}]}',
    "TOFF": b'{"class":"TOFF","device":"/dev/ttyUSB0","real_sec":1330212592,'
            b'"real_nsec":343182,"clock_sec":1330212592,"clock_nsec":343184}',
    "PPS": b'{"class":"PPS","device":"/dev/ttyUSB0","real_sec":1330212592,"real_nsec":0,'
           b'"clock_sec":1330212592,"clock_nsec":343184,"precision":-20}',
    "OSC": b'{"class":"OSC","device":"/dev/ttyUSB0","running":true,"reference":true,'
           b'"disciplined":false,"delta":67}',
    "DEVICE": b'{"class":"DEVICE","path":"/dev/ttyUSB0","activated":1269959537.20,'
              b'"native":1,"bps":4800,"parity":"N","stopbits":1,"cycle":1.00}',
    "ERROR": b'{"class":"ERROR","message":"Unrecognized request \'FOO\'"}',
}


def test_sample_frames_cover_every_known_class() -> None:
    """The fixtures above exercise the whole dispatch table."""
    assert set(SAMPLE_FRAMES) == KNOWN_CLASSES


@pytest.mark.parametrize("tag", sorted(SAMPLE_FRAMES))
def test_known_class_decodes_with_matching_discriminant(tag: str) -> None:
    """Every known tag decodes and reports itself under that tag."""
    report = decode(tag, SAMPLE_FRAMES[tag])
    assert report.report_class == tag


def test_tpv_fields() -> None:
    """Numbers become floats and the time is an aware datetime."""
    report = decode("TPV", SAMPLE_FRAMES["TPV"])
    assert isinstance(report, TPV)
    assert report.mode == 3.0
    assert isinstance(report.mode, float)
    assert report.lat == pytest.approx(46.498293369)
    assert report.time == datetime(2005, 6, 8, 10, 34, 48, 283000, tzinfo=timezone.utc)
    assert report.epx is None


def test_sky_satellites_are_ordered_tuples() -> None:
    """Satellite entries keep their wire order and map ``PRN``."""
    report = decode("SKY", SAMPLE_FRAMES["SKY"])
    assert isinstance(report, SKY)
    assert isinstance(report.satellites, tuple)
    assert [s.prn for s in report.satellites] == [23.0, 28.0]
    assert report.satellites[1].az == 160.0
    assert report.satellites[0].used is False


def test_poll_nests_reports() -> None:
    """POLL aggregates decoded TPV and SKY summaries."""
    report = decode("POLL", SAMPLE_FRAMES["POLL"])
    assert isinstance(report, POLL)
    assert report.active == 1.0
    assert report.tpv[0].lat == 46.5
    assert report.sky[0].device == "/dev/ttyUSB0"
    assert report.gst == ()


def test_activated_accepts_string() -> None:
    """Inside DEVICES, ``activated`` is a timestamp string."""
    report = decode("DEVICES", SAMPLE_FRAMES["DEVICES"])
    assert isinstance(report, DEVICES)
    device = report.devices[0]
    assert device.activated == Activated(text="2021-04-01T10:00:00.000Z")
    assert not device.activated.is_number


def test_activated_accepts_number() -> None:
    """A standalone DEVICE may carry ``activated`` as a number."""
    report = decode("DEVICE", SAMPLE_FRAMES["DEVICE"])
    assert isinstance(report, DEVICE)
    assert report.activated.is_number
    assert report.activated.value == pytest.approx(1269959537.20)


def test_activated_rejects_other_types() -> None:
    """Objects are neither numbers nor strings."""
    with pytest.raises(DecodeError):
        decode("DEVICE", b'{"class":"DEVICE","activated":{"t":1}}')


def test_unknown_attributes_are_ignored() -> None:
    """Attributes newer daemons add do not break decoding."""
    report = decode("VERSION", b'{"class":"VERSION","release":"3.25","leap_seconds":18}')
    assert isinstance(report, VERSION)
    assert report.release == "3.25"


def test_null_decodes_to_none() -> None:
    """JSON null is treated like an absent attribute."""
    report = decode("WATCH", b'{"class":"WATCH","device":null,"enable":true}')
    assert isinstance(report, WATCH)
    assert report.device is None
    assert report.enable is True


@pytest.mark.parametrize(
    "frame",
    [
        b'{"class":"UNKNOWN"}',
        b"{not json at all",
        b"\xff\xfe\x00garbage",
        b"",
    ],
)
def test_unknown_class(frame: bytes) -> None:
    """Unknown tags fail with UnknownClass whatever the payload."""
    with pytest.raises(UnknownClass) as excinfo:
        decode("UNKNOWN", frame)
    assert excinfo.value.tag == "UNKNOWN"


def test_invalid_json_for_known_class() -> None:
    """A known tag with a broken payload is a DecodeError."""
    with pytest.raises(DecodeError):
        decode("TPV", b'{"class":"TPV","lat":')


def test_wrong_field_type() -> None:
    """A string where a number is expected is a DecodeError."""
    with pytest.raises(DecodeError, match="lat"):
        decode("TPV", b'{"class":"TPV","lat":"north"}')


def test_boolean_is_not_a_number() -> None:
    """``true`` is not accepted for numeric attributes."""
    with pytest.raises(DecodeError):
        decode("TPV", b'{"class":"TPV","mode":true}')


def test_invalid_timestamp() -> None:
    """Unparseable timestamps are a DecodeError."""
    with pytest.raises(DecodeError, match="timestamp"):
        decode("TPV", b'{"class":"TPV","time":"yesterday"}')


def test_non_object_payload() -> None:
    """A JSON array is not a report."""
    with pytest.raises(DecodeError):
        decode("TPV", b'[1, 2, 3]')


def test_reports_are_immutable() -> None:
    """Decoded reports are frozen snapshots."""
    report = decode("TPV", SAMPLE_FRAMES["TPV"])
    with pytest.raises(AttributeError):
        report.lat = 0.0
