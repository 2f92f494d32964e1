"""Tests for the node log line parser."""

import json
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from hyperdune.errors import TradeParseError
from hyperdune.ingestion.parser import parse_decimal, parse_line, parse_time

DAY = date(2024, 10, 15)


def _side(**overrides) -> dict:
    side = {
        "user": "0x31ca8395cf837de08b24da3f660e77761dfb974b",
        "start_pos": "-12.5",
        "oid": 20441871223,
        "twap_id": None,
        "cloid": "0x00000000000000000000000000000001",
    }
    side.update(overrides)
    return side


def _event(**overrides) -> dict:
    event = {
        "coin": "ETH",
        "side": "B",
        "time": "2024-10-15T13:45:10.123",
        "px": "2617.4",
        "sz": "0.0507",
        "hash": "0x9f3c1b2a",
        "trade_dir_override": "Na",
        "side_info": [
            _side(),
            _side(user="0x010461c14e146ac35fe42271bdc1134ee31c703a", start_pos="3.0", oid=20441871300, cloid=None),
        ],
    }
    event.update(overrides)
    return event


def _line(event: dict) -> str:
    return json.dumps(event) + "\n"


class TestParseTime:
    def test_millisecond_timestamp(self):
        assert parse_time("2024-10-15T13:45:10.123") == datetime(
            2024, 10, 15, 13, 45, 10, 123000, tzinfo=UTC
        )

    @pytest.mark.parametrize(
        "value",
        [
            "2024-10-15T13:45:10",
            "2024-10-15T13:45:10.123456",
            "2024-10-15T13:45:10.123Z",
            "2024-10-15 13:45:10.123",
            "2024-13-15T13:45:10.123",
            "2024-10-15T13:45:10.123\n",
            "\u0662\u0660\u0662\u0664-10-15T13:45:10.123",
            "",
        ],
    )
    def test_rejects_other_formats(self, value):
        with pytest.raises(ValueError):
            parse_time(value)


class TestParseDecimal:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("2617.4", 2617.4), ("-12.5", -12.5), ("0", 0.0), ("1e-3", 0.001), (".5", 0.5), ("+3.", 3.0)],
    )
    def test_valid(self, value, expected):
        assert parse_decimal(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["abc", "", " 1.0", "1.5\n", "1_000", "inf", "nan", "1.2.3", "1e999", "\u0661\u0662", "\uff11.5"],
    )
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_decimal(value)


class TestParseLine:
    def test_valid_trade_fields_match_input(self):
        trade = parse_line(_line(_event()), DAY)

        assert trade is not None
        assert trade.coin == "ETH"
        assert trade.side == "B"
        assert trade.time == datetime(2024, 10, 15, 13, 45, 10, 123000, tzinfo=UTC)
        assert trade.px == 2617.4
        assert trade.sz == 0.0507
        assert trade.hash == "0x9f3c1b2a"
        assert trade.trade_dir_override == "Na"
        assert trade.side_a.user == "0x31ca8395cf837de08b24da3f660e77761dfb974b"
        assert trade.side_a.start_pos == -12.5
        assert trade.side_a.oid == 20441871223
        assert trade.side_a.twap_id is None
        assert trade.side_a.cloid == "0x00000000000000000000000000000001"
        assert trade.side_b.user == "0x010461c14e146ac35fe42271bdc1134ee31c703a"
        assert trade.side_b.start_pos == 3.0
        assert trade.side_b.oid == 20441871300
        assert trade.side_b.cloid is None

    def test_line_without_trailing_newline(self):
        assert parse_line(json.dumps(_event()), DAY) is not None

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_wrong_side_count_is_not_applicable(self, count):
        event = _event(side_info=[_side() for _ in range(count)])
        assert parse_line(_line(event), DAY) is None

    def test_wrong_side_count_ignores_bad_fields(self):
        event = _event(side_info=[_side()], time="garbage", px="abc")
        assert parse_line(_line(event), DAY) is None

    def test_missing_side_info_is_not_applicable(self):
        event = _event()
        del event["side_info"]
        assert parse_line(_line(event), DAY) is None

    def test_side_info_not_a_list_is_not_applicable(self):
        assert parse_line(_line(_event(side_info={"a": 1, "b": 2})), DAY) is None

    def test_non_object_json_is_not_applicable(self):
        assert parse_line("[1, 2]\n", DAY) is None

    def test_blank_line_is_not_applicable(self):
        assert parse_line("   \n", DAY) is None

    def test_other_day_is_not_applicable(self):
        assert parse_line(_line(_event()), date(2024, 10, 16)) is None

    def test_other_day_ignores_bad_fields(self):
        event = _event(time="2024-10-14T23:59:59.999", px="abc")
        event["side_info"][0]["oid"] = "abc"
        assert parse_line(_line(event), DAY) is None

    def test_day_boundary(self):
        first = _event(time="2024-10-15T00:00:00.000")
        last = _event(time="2024-10-15T23:59:59.999")
        assert parse_line(_line(first), DAY) is not None
        assert parse_line(_line(last), DAY) is not None

    def test_cloid_absent_on_both_sides(self):
        event = _event()
        for side in event["side_info"]:
            del side["cloid"]
            del side["twap_id"]
        trade = parse_line(_line(event), DAY)
        assert trade is not None
        assert trade.side_a.cloid is None
        assert trade.side_b.cloid is None
        assert trade.side_a.twap_id is None

    def test_non_string_optional_fields_become_none(self):
        event = _event()
        event["side_info"][0]["twap_id"] = 1234
        event["side_info"][1]["cloid"] = {"x": 1}
        trade = parse_line(_line(event), DAY)
        assert trade.side_a.twap_id is None
        assert trade.side_b.cloid is None

    def test_string_twap_id_is_kept(self):
        event = _event()
        event["side_info"][1]["twap_id"] = "5521"
        assert parse_line(_line(event), DAY).side_b.twap_id == "5521"


class TestParseLineErrors:
    def test_invalid_json(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line('{"coin": "ETH", \n', DAY)
        assert exc_info.value.field == "<json>"

    def test_malformed_time(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(time="2024-10-15T13:45:10Z")), DAY)
        assert exc_info.value.field == "time"

    def test_missing_time(self):
        event = _event()
        del event["time"]
        with pytest.raises(TradeParseError, match="'time'"):
            parse_line(_line(event), DAY)

    @pytest.mark.parametrize("field", ["coin", "side", "hash", "trade_dir_override", "px", "sz"])
    def test_missing_required_field(self, field):
        event = _event()
        del event[field]
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == field

    @pytest.mark.parametrize("field", ["coin", "side", "hash", "trade_dir_override"])
    def test_empty_identifier(self, field):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(**{field: ""})), DAY)
        assert exc_info.value.field == field

    def test_non_string_coin(self):
        with pytest.raises(TradeParseError, match="expected string"):
            parse_line(_line(_event(coin=7)), DAY)

    def test_px_as_json_number(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(px=2617.4)), DAY)
        assert exc_info.value.field == "px"

    def test_px_with_trailing_newline(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(px="1.5\n")), DAY)
        assert exc_info.value.field == "px"

    def test_start_pos_with_non_ascii_digits(self):
        event = _event()
        event["side_info"][0]["start_pos"] = "١٢"
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "side_info[0].start_pos"

    def test_time_with_non_ascii_year(self):
        event = _event(time="٢٠٢٤-10-15T13:45:10.123")
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "time"

    def test_time_with_trailing_newline(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(time="2024-10-15T13:45:10.123\n")), DAY)
        assert exc_info.value.field == "time"

    def test_unparseable_sz(self):
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(_event(sz="lots")), DAY)
        assert exc_info.value.field == "sz"

    @pytest.mark.parametrize("oid", ["abc", "123", -1, 1.5, True, 2**64])
    def test_bad_oid(self, oid):
        event = _event()
        event["side_info"][1]["oid"] = oid
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "side_info[1].oid"

    def test_max_oid_accepted(self):
        event = _event()
        event["side_info"][0]["oid"] = 2**64 - 1
        assert parse_line(_line(event), DAY).side_a.oid == 2**64 - 1

    def test_missing_user(self):
        event = _event()
        del event["side_info"][0]["user"]
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "side_info[0].user"

    def test_bad_start_pos(self):
        event = _event()
        event["side_info"][0]["start_pos"] = "n/a"
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "side_info[0].start_pos"

    def test_side_not_an_object(self):
        event = _event(side_info=[_side(), "0xabc"])
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(_line(event), DAY)
        assert exc_info.value.field == "side_info[1]"

    def test_error_carries_line_and_source(self):
        source = Path("/data/20241015/13")
        raw = json.dumps(_event(px="abc"))
        with pytest.raises(TradeParseError) as exc_info:
            parse_line(raw + "\n", DAY, source=source)
        err = exc_info.value
        assert err.line == raw
        assert err.source == source
        assert str(source) in str(err)
        assert "'px'" in str(err)
