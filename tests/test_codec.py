from __future__ import annotations

from datetime import datetime, timedelta, timezone
import unittest

from talogo.codec import (
    decode_row,
    encode_row,
    header_fields,
    is_current_header,
    is_legacy_header,
    iter_records,
    max_chain_width,
    title_width,
)
from talogo.errors import RowDecodeError
from talogo.models import Row, format_timestamp, parse_timestamp


EST = timezone(timedelta(hours=-5))


class TestRowCodec(unittest.TestCase):
    def test_encode_quotes_only_fields_that_need_it(self) -> None:
        line = encode_row(["a,b", 'say "hi"', "line\nbreak", "plain", ""])
        self.assertEqual('"a,b","say ""hi""","line\nbreak",plain,', line)

    def test_decode_accepts_variable_field_counts(self) -> None:
        self.assertEqual(["a", "b"], decode_row("a,b"))
        self.assertEqual(["a", "b", "c", "", ""], decode_row("a,b,c,,"))
        self.assertEqual([], decode_row(""))

    def test_decode_tolerates_hand_edited_rows(self) -> None:
        self.assertEqual(["x", "y,z", "w"], decode_row('x, "y,z", w'))
        self.assertEqual(['a"b', "c"], decode_row('a"b,c'))

    def test_decode_reads_quoted_newlines_as_one_record(self) -> None:
        self.assertEqual(["a", "x\ny"], decode_row('a,"x\ny"'))

    def test_decode_rejects_nul_and_multiple_records(self) -> None:
        with self.assertRaises(RowDecodeError) as ctx:
            decode_row("a,\x00b")
        self.assertEqual("a,\x00b", ctx.exception.line)
        self.assertIn("NUL", ctx.exception.reason)

        with self.assertRaises(RowDecodeError):
            decode_row("a,b\nc,d")

    def test_row_round_trips_through_codec(self) -> None:
        row = Row(
            start=datetime(2024, 1, 2, 15, 4, 5, tzinfo=EST),
            end=datetime(2024, 1, 2, 16, 0, 0, tzinfo=EST),
            titles=("Client, Inc.", 'The "big" project', "Bugfix"),
        )
        fields = decode_row(encode_row(row.fields(5)))

        self.assertEqual(7, len(fields))
        self.assertEqual(row.start, parse_timestamp(fields[0]))
        self.assertEqual(row.end, parse_timestamp(fields[1]))
        self.assertEqual(list(row.titles), fields[2:5])
        self.assertEqual(["", ""], fields[5:])

    def test_row_fields_refuse_narrower_width(self) -> None:
        row = Row(
            start=datetime(2024, 1, 2, 9, tzinfo=timezone.utc),
            end=datetime(2024, 1, 2, 10, tzinfo=timezone.utc),
            titles=("A", "B"),
        )
        with self.assertRaises(ValueError):
            row.fields(1)


class TestRecordStream(unittest.TestCase):
    def test_line_numbers_follow_physical_lines(self) -> None:
        lines = [
            "start_time,end_time,title1\n",
            'x,y,"multi\n',
            'line"\n',
            "\n",
            "a,b,c\n",
        ]
        records = list(iter_records(lines))

        self.assertEqual([1, 2, 4, 5], [record.line_number for record in records])
        self.assertEqual(["x", "y", "multi\nline"], records[1].fields)
        self.assertEqual([], records[2].fields)

    def test_bad_record_does_not_stop_the_stream(self) -> None:
        lines = ["h1,h2\n", "ok,1\n", "bad,\x00\n", "ok,2\n"]
        records = list(iter_records(lines))

        self.assertEqual(4, len(records))
        self.assertIsNotNone(records[2].error)
        self.assertEqual(3, records[2].line_number)
        self.assertEqual("bad,\x00", records[2].error.line)
        self.assertEqual(["ok", "2"], records[3].fields)


class TestHeaderHelpers(unittest.TestCase):
    def test_header_fields_name_title_columns(self) -> None:
        self.assertEqual(["start_time", "end_time", "title1", "title2", "title3"], header_fields(3))
        self.assertEqual(3, title_width(header_fields(3)))

    def test_layout_detection(self) -> None:
        self.assertTrue(is_current_header(["start_time", "end_time", "title1"]))
        self.assertTrue(is_current_header(["start_time", " end_time"]))
        self.assertFalse(is_current_header(["title", "start_time", "end_time", "duration_seconds"]))
        self.assertTrue(is_legacy_header(["title", "start_time", "end_time", "duration_seconds"]))

    def test_max_chain_width(self) -> None:
        start = datetime(2024, 1, 2, 9, tzinfo=timezone.utc)
        rows = [Row(start, start, ("A",)), Row(start, start, ("A", "B", "C"))]
        self.assertEqual(3, max_chain_width(rows))
        self.assertEqual(0, max_chain_width([]))


class TestTimestamps(unittest.TestCase):
    def test_format_uses_offset_and_z_for_utc(self) -> None:
        self.assertEqual("2024-01-02T15:04:05-05:00", format_timestamp(datetime(2024, 1, 2, 15, 4, 5, 999, tzinfo=EST)))
        self.assertEqual("2024-01-02T00:00:00Z", format_timestamp(datetime(2024, 1, 2, tzinfo=timezone.utc)))

    def test_parse_round_trips_exactly(self) -> None:
        for text in ("2024-01-02T15:04:05-05:00", "2024-01-02T00:00:00Z", "2024-06-30T23:59:59+05:30"):
            self.assertEqual(text, format_timestamp(parse_timestamp(text)))

    def test_parse_rejects_naive_and_garbage(self) -> None:
        for text in ("2024-01-02T15:04:05", "yesterday", ""):
            with self.assertRaises(ValueError):
                parse_timestamp(text)

    def test_format_rejects_naive(self) -> None:
        with self.assertRaises(ValueError):
            format_timestamp(datetime(2024, 1, 2))


if __name__ == "__main__":
    unittest.main()
